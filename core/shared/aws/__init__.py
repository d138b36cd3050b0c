"""core/shared/aws - AWS 공유 유틸리티"""
