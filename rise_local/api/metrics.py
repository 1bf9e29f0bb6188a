"""
Prometheus 메트릭 엔드포인트

/metrics 엔드포인트를 통해 Prometheus가 메트릭을 수집할 수 있도록 합니다.
"""

from fastapi import APIRouter, Response

from rise_local.utils.prometheus_metrics import get_metrics, get_content_type

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics")
async def metrics():
    """
    Prometheus 메트릭 노출 엔드포인트

    **응답 예시:**
    ```
    # HELP rise_local_redemptions_total 기록된 딜 리딤 수
    # TYPE rise_local_redemptions_total counter
    rise_local_redemptions_total{source="vendor_verify"} 42.0
    ```
    """
    return Response(content=get_metrics(), media_type=get_content_type())
