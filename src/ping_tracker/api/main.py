from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from ..config import ServerConfig, load_server_config
from ..query.range_query import list_device_ids, query_pings
from ..storage.ping_store import PingStore, StoreUnavailable, build_store
from ..utils.time_utils import InvalidTimeToken, parse_epoch, resolve_date, resolve_window

logger = logging.getLogger(__name__)


def _bad_request_empty() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=[])


def get_store(request: Request) -> PingStore:
    return request.app.state.store


def create_app(store: PingStore | None = None, config: ServerConfig | None = None) -> FastAPI:
    """Build the API around `store`, or a store built from configuration at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.store is None
        if owned:
            app.state.store = build_store(config or load_server_config())
        try:
            yield
        finally:
            if owned:
                app.state.store.close()
                app.state.store = None

    app = FastAPI(title="Ping Tracker API", lifespan=lifespan)
    app.state.store = store

    # Fixed paths are registered ahead of the parameterised ones.
    @app.post("/clear_data")
    def clear_data(store: PingStore = Depends(get_store)):
        """Remove every device and its pings."""
        try:
            store.clear()
        except StoreUnavailable:
            logger.exception("Clear failed")
            return Response(status_code=status.HTTP_400_BAD_REQUEST)
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/devices")
    def list_devices(store: PingStore = Depends(get_store)):
        """List ids of all known devices."""
        ids, bad = list_device_ids(store)
        if bad:
            return _bad_request_empty()
        return ids

    @app.post("/{device_id}/{epoch_time}")
    def post_ping(device_id: str, epoch_time: str, store: PingStore = Depends(get_store)):
        """Record a ping for a device at the given epoch second."""
        try:
            timestamp = parse_epoch(epoch_time)
        except InvalidTimeToken:
            logger.warning("Rejected ping for %r: bad epoch %r", device_id, epoch_time)
            return Response(status_code=status.HTTP_400_BAD_REQUEST)
        try:
            store.insert(device_id, timestamp)
        except StoreUnavailable:
            logger.exception("Insert failed for device %r", device_id)
            return Response(status_code=status.HTTP_400_BAD_REQUEST)
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/{device_id}/{date}")
    def get_date(device_id: str, date: str, store: PingStore = Depends(get_store)):
        """Pings for one device (or `all`) on a single UTC day."""
        try:
            window = resolve_date(date)
        except InvalidTimeToken:
            logger.warning("Rejected date query: %r", date)
            return _bad_request_empty()
        result = query_pings(store, device_id, window)
        code = status.HTTP_400_BAD_REQUEST if result.bad_request else status.HTTP_200_OK
        return JSONResponse(status_code=code, content=result.payload())

    @app.get("/{device_id}/{from_token}/{to_token}")
    def get_range(
        device_id: str, from_token: str, to_token: str, store: PingStore = Depends(get_store)
    ):
        """Pings for one device (or `all`) in [from, to); tokens are dates or epochs."""
        try:
            window = resolve_window(from_token, to_token)
        except InvalidTimeToken as e:
            logger.warning("Rejected range query: %s", e)
            return _bad_request_empty()
        result = query_pings(store, device_id, window)
        code = status.HTTP_400_BAD_REQUEST if result.bad_request else status.HTTP_200_OK
        return JSONResponse(status_code=code, content=result.payload())

    return app


app = create_app()
