"""Command line entry: wire a service from its configuration and serve it."""

from __future__ import annotations

import argparse
import logging
import signal
import socket
import sys
import threading
from collections.abc import Callable, Sequence

from microshop.config import Bootstrap, load_config
from microshop.database import open_database
from microshop.http_server import ApiServer, order_routes, repertory_routes, user_routes
from microshop.orders import ORDER_SCHEMA, OrderRepo, OrderService, OrderUseCase
from microshop.repertory import (
    LockClient,
    RepertoryRepo,
    RepertoryService,
    RepertoryUseCase,
    connect_redis,
)
from microshop.users import USER_SCHEMA, UserRepo, UsersService, UserUseCase

_log = logging.getLogger(__name__)

SERVICES = ("order", "user", "repertory")


def _service_key(name: str) -> str:
    return name.strip().lower().removesuffix("service")


def build_app(name: str, bootstrap: Bootstrap) -> tuple[ApiServer, Callable[[], None]]:
    """Connect the data store of service ``name`` and return its server and cleanup."""
    key = _service_key(name)
    if key == "order":
        database = open_database(bootstrap.data.mysql.addr, ORDER_SCHEMA)
        routes = order_routes(OrderService(OrderUseCase(OrderRepo(database))))
        cleanup = database.close
    elif key == "user":
        database = open_database(bootstrap.data.mysql.addr, USER_SCHEMA)
        routes = user_routes(UsersService(UserUseCase(UserRepo(database))))
        cleanup = database.close
    elif key == "repertory":
        client = connect_redis(bootstrap.data.redis)
        usecase = RepertoryUseCase(RepertoryRepo(client), LockClient(client))
        routes = repertory_routes(RepertoryService(usecase))

        def cleanup() -> None:
            client.close()
            _log.info("closing the data resources")

    else:
        raise ValueError(f"unknown service: {name!r}")

    http = bootstrap.server.http
    try:
        server = ApiServer(routes, http.addr, http.timeout)
    except (OSError, ValueError):
        cleanup()
        raise
    return server, cleanup


def _configure_logging(service: str) -> None:
    host = socket.gethostname().replace("%", "%%")
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format=(
            f"%(asctime)s %(levelname)s service.id={host} service.name={service} "
            "caller=%(module)s:%(lineno)d %(message)s"
        ),
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run one service until interrupted; return the exit status."""
    parser = argparse.ArgumentParser(prog="microshop", description="Run a shop microservice.")
    parser.add_argument("service", choices=SERVICES, help="the service to run")
    parser.add_argument(
        "-conf",
        "--conf",
        dest="conf",
        default="./configs",
        help="config path, eg: -conf config.yaml",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.service)

    try:
        bootstrap = load_config(args.conf)
        server, cleanup = build_app(args.service, bootstrap)
    except (OSError, ValueError, RuntimeError) as exc:
        print(f"{parser.prog}: {exc}", file=sys.stderr)
        return 1

    previous = None
    in_main_thread = threading.current_thread() is threading.main_thread()
    if in_main_thread:
        # SIGTERM stops the service the same way Ctrl-C does.
        previous = signal.signal(signal.SIGTERM, signal.default_int_handler)
    host, port = server.address
    _log.info("%s service listening on %s:%d", args.service, host or "0.0.0.0", port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()
        cleanup()
        if in_main_thread and previous is not None:
            signal.signal(signal.SIGTERM, previous)
    return 0


if __name__ == "__main__":
    sys.exit(main())