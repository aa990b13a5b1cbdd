from stkpay.integrations.gateway.base import GatewayPushResult, PaymentGateway
from stkpay.integrations.gateway.lipana import LipanaGateway
from stkpay.integrations.gateway.mock import MockGateway
from stkpay.infrastructure.settings import Settings


def build_gateway(settings: Settings) -> PaymentGateway:
    """Select the gateway client for the configured GATEWAY_MODE"""
    if settings.use_mock_gateway:
        return MockGateway()
    return LipanaGateway(
        api_key=settings.GATEWAY_API_KEY,
        base_url=settings.gateway_base_url,
        initiate_path=settings.GATEWAY_INITIATE_PATH,
        timeout_seconds=settings.GATEWAY_TIMEOUT_SECONDS,
    )


__all__ = [
    "GatewayPushResult",
    "PaymentGateway",
    "LipanaGateway",
    "MockGateway",
    "build_gateway",
]
