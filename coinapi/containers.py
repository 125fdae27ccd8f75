from dependency_injector import containers, providers

from coinapi.config import Settings
from coinapi.providers.payment.gateway import PaymentGatewayClient


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class GatewayModule(containers.DeclarativeContainer):
    """Outbound clients with process-wide lifetime."""

    config = providers.DependenciesContainer()

    payment_gateway = providers.Singleton(PaymentGatewayClient, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "coinapi.deps",
        ],
    )

    config = providers.Container(ConfigModule)
    gateways = providers.Container(GatewayModule, config=config)
