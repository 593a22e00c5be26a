"""
Commerce Service Worker
Runs one service role: consumes its events, serves its RPC requests and
publishes through the shared exchange.

Usage:
    python -m commerce.worker product|inventory|review|shopping
"""
import argparse
import asyncio
import signal
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorDatabase

from commerce.core.config import Config, config
from commerce.core.logger import logger
from commerce.db import mongodb
from commerce.messaging.event_dispatcher import EventDispatcher
from commerce.messaging.i_message_broker import IMessageBroker
from commerce.messaging.message_broker_factory import MessageBrokerFactory
from commerce.messaging.message_types import Destination
from commerce.messaging.rpc_gateway import RPCGateway
from commerce.messaging.rpc_responder import RPCResponder
from commerce.repositories.cart_repository import CartRepository
from commerce.repositories.product_repository import ProductRepository
from commerce.repositories.review_repository import ReviewRepository
from commerce.repositories.variant_repository import VariantRepository
from commerce.services.base_service import IService
from commerce.services.cart_service import CartService
from commerce.services.inventory_service import InventoryService
from commerce.services.product_service import ProductService
from commerce.services.review_service import ReviewService

# Load environment variables
load_dotenv()

ServiceBuilder = Callable[[AsyncIOMotorDatabase, IMessageBroker, RPCGateway, Config], IService]


@dataclass(frozen=True)
class ServiceRole:
    events: Destination
    builder: ServiceBuilder
    rpc: Optional[Destination] = None


def _build_product_service(database, broker, gateway, settings) -> IService:
    return ProductService(
        ProductRepository(database[mongodb.PRODUCTS_COLLECTION]),
        broker,
        gateway,
        settings.rpc_timeout_seconds,
    )


def _build_inventory_service(database, broker, gateway, settings) -> IService:
    return InventoryService(VariantRepository(database[mongodb.VARIANTS_COLLECTION]))


def _build_review_service(database, broker, gateway, settings) -> IService:
    return ReviewService(ReviewRepository(database[mongodb.REVIEWS_COLLECTION]), broker)


def _build_cart_service(database, broker, gateway, settings) -> IService:
    return CartService(
        CartRepository(database[mongodb.CARTS_COLLECTION]),
        gateway,
        settings.rpc_timeout_seconds,
    )


ROLES: Dict[str, ServiceRole] = {
    "product": ServiceRole(Destination.PRODUCT_SERVICE, _build_product_service, Destination.PRODUCT_RPC),
    "inventory": ServiceRole(Destination.INVENTORY_SERVICE, _build_inventory_service, Destination.INVENTORY_RPC),
    "review": ServiceRole(Destination.REVIEW_SERVICE, _build_review_service),
    "shopping": ServiceRole(Destination.SHOPPING_SERVICE, _build_cart_service),
}


class ServiceWorker:
    """Process hosting a single service role"""

    def __init__(self, role: str, settings: Config = config):
        if role not in ROLES:
            raise ValueError(f"Unknown service role: {role}. Supported roles: {', '.join(ROLES)}")
        self.role = role
        self.settings = settings
        self.broker: Optional[IMessageBroker] = None
        self.gateway: Optional[RPCGateway] = None
        self.dispatcher: Optional[EventDispatcher] = None
        self.responder: Optional[RPCResponder] = None
        self.service: Optional[IService] = None
        self._stopped = asyncio.Event()

    async def start(self, database: Optional[AsyncIOMotorDatabase] = None,
                    broker: Optional[IMessageBroker] = None) -> None:
        """Connect, build the service and start consuming"""
        role = ROLES[self.role]
        logger.info(f"{self.role} worker starting...", metadata={"role": self.role})

        if database is None:
            database = await mongodb.get_database()

        self.broker = broker or MessageBrokerFactory.create(self.settings)
        await self.broker.connect()

        self.gateway = RPCGateway(
            self.broker,
            f"{self.role.upper()}_SERVICE",
            default_timeout=self.settings.rpc_timeout_seconds,
        )
        await self.gateway.start()

        self.service = role.builder(database, self.broker, self.gateway, self.settings)

        self.dispatcher = EventDispatcher(
            self.broker,
            role.events.value,
            self.service,
            exclusive=self.settings.event_queue_exclusive,
        )
        await self.dispatcher.start()

        if role.rpc is not None:
            self.responder = RPCResponder(self.broker, role.rpc.value, self.service)
            await self.responder.start()

        logger.info(
            f"{self.role} worker started",
            metadata={"events": role.events.value, "rpc": role.rpc.value if role.rpc else None},
        )

    def request_stop(self) -> None:
        self._stopped.set()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    async def stop(self) -> None:
        """Gracefully stop the worker"""
        logger.info(f"Stopping {self.role} worker...")
        if self.dispatcher:
            self.dispatcher.close()
        if self.gateway:
            self.gateway.close()
        if self.broker:
            try:
                await self.broker.disconnect()
                logger.info("Message broker disconnected")
            except Exception as e:
                logger.error("Error disconnecting broker", error=e)
        await mongodb.close_mongo_connection()
        logger.info(f"{self.role} worker stopped")


async def main(role: str) -> None:
    """Main entry point for a worker process"""
    worker = ServiceWorker(role)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, worker.request_stop)

    try:
        await worker.start()
        await worker.wait_stopped()
        logger.info("Shutdown signal received")
    except Exception as e:
        logger.critical("Worker error", error=e, metadata={"role": role})
        raise
    finally:
        await worker.stop()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="python -m commerce.worker", description="Run one commerce service role")
    parser.add_argument("role", nargs="?", default=config.service_role, choices=sorted(ROLES))
    return parser.parse_args(argv)


if __name__ == "__main__":
    asyncio.run(main(parse_args().role))
