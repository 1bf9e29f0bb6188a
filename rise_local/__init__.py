"""
Rise Local 백엔드

지역 벤더 딜, 쿠폰 코드 발급과 리딤, 장바구니, 메시징 API
"""

__version__ = "1.0.0"
