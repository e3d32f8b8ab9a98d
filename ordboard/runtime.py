from __future__ import annotations

from dataclasses import dataclass

from ordboard.config import Settings, load_settings
from ordboard.db import init_db
from ordboard.repository import Repository
from ordboard.services.mempool import MempoolClient
from ordboard.services.order_api import OrderApiClient
from ordboard.services.order_tracking import OrderTrackingService
from ordboard.services.price import PriceClient


@dataclass(slots=True)
class AppContainer:
    settings: Settings
    repository: Repository
    order_api: OrderApiClient
    mempool: MempoolClient
    price: PriceClient
    tracking: OrderTrackingService

    def close(self) -> None:
        self.order_api.close()
        self.mempool.close()
        self.price.close()


def build_container(settings: Settings | None = None) -> AppContainer:
    settings = settings or load_settings()
    init_db(settings.database_path)
    repository = Repository(settings.database_path)
    order_api = OrderApiClient(settings)
    mempool = MempoolClient(settings)
    price = PriceClient(settings)
    tracking = OrderTrackingService(repository=repository, order_api=order_api, mempool=mempool, settings=settings)
    return AppContainer(
        settings=settings,
        repository=repository,
        order_api=order_api,
        mempool=mempool,
        price=price,
        tracking=tracking,
    )
