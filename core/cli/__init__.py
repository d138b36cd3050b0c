"""core/cli - CLI 공용 UI"""
