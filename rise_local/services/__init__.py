"""
비즈니스 로직 서비스 패키지
"""
