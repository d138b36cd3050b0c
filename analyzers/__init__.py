"""analyzers - 리소스 분석 리포트"""
