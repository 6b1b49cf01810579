# microshop

Three small shop services in one package, each served as JSON over HTTP:

- **order** (`microshop.orders`) – create orders and look them up by id, stored in an
  SQLite database;
- **user** (`microshop.users`) – register users; a user registered without a name is
  called `xxx`, and every new user without money starts with `100`;
- **repertory** (`microshop.repertory`) – keep stock counts in Redis, add stock, and
  sell it under a three-second per-item lock (`SET NX`, released by a Lua script only by
  the holder) so that two buyers of the same item do not run at once.

There is also a small greeter (`microshop.greeter`) with in-memory storage, usable from
code; it is not exposed over HTTP.

## Installing

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Running a service

The `microshop` command starts one service and serves it until interrupted (Ctrl-C or
SIGTERM):

    microshop order --conf ./configs
    microshop user --conf config.yaml
    microshop repertory

`--conf` (also written `-conf`) names a configuration file or a directory; it defaults to
`./configs`. For a directory, every `.yaml`, `.yml` and `.json` file in it is read in name
order and merged. Logs go to standard output.

A configuration looks like this:

```yaml
server:
  http:
    addr: 0.0.0.0:8000
    timeout: 1s
data:
  mysql:
    addr: shop.db        # SQLite database file for the order and user services
  redis:
    network: tcp         # "unix" makes addr a socket path
    addr: 127.0.0.1:6379
    db: 0
```

Durations accept Go-style text such as `500ms` or `1m30s`, or plain seconds. An empty HTTP
address listens on all interfaces on a free port. The database connection is tried up to
five times and Redis is pinged up to three times, five seconds apart, before giving up.

## HTTP API

| Service   | Method | Path                     | Body fields                           |
|-----------|--------|--------------------------|---------------------------------------|
| order     | POST   | `/v1/orders`             | `user_id`, `good_id`, `good_quantity` |
| order     | GET    | `/v1/orders/{id}`        |                                       |
| user      | POST   | `/v1/users/register`     | `name`                                |
| repertory | POST   | `/v1/repertory`          | `id`, `quantity`                      |
| repertory | POST   | `/v1/repertory/purchase` | `repertory_id`, `quantity`, `user_id` |

Successful calls answer `200` with, for example, `{"success": true}`, or for a registration
`{"code": 200, "user": {"id": 1, "name": "xxx", "money": 100}}`. Failures answer with the
error's status and a body `{"code": ..., "reason": ..., "message": ..., "metadata": {}}`:
`404 NOT_FOUND` for an unknown path or a missing record, `405 METHOD_NOT_ALLOWED`,
`400 CODEC` for a body that is not a JSON object, `400 BAD_REQUEST` for a field of the
wrong type or range, `500 CONCURRENT_CONFLICT` when the item's lock is held,
`500 INSUFFICIENT_STOCK`, and `500 UNKNOWN` for anything else.

`microshop.http_server.dispatch(routes, method, path, body)` runs the same routing
without a socket and returns the status code and payload.

## Using the library

```python
from microshop.config import load_config
from microshop.repertory import (
    LockClient, RepertoryRepo, RepertoryService, RepertoryUseCase, connect_redis,
)

bootstrap = load_config("configs/config.yaml")
client = connect_redis(bootstrap.data.redis, 3, 5)
usecase = RepertoryUseCase(RepertoryRepo(client), LockClient(client))
service = RepertoryService(usecase)

service.add_repertory(1, 10)
service.purchase(1, 2, 42)
```

`microshop.cli.build_app(name, bootstrap)` wires a whole service and returns its
`ApiServer` together with a cleanup function.

Business failures are raised as `microshop.errors.ServiceError`, which carries a status
code, a reason and a message. Missing records raise `LookupError`.

Stock is read from the Redis key `repertory:<id>`, while a purchase decrements
`goods:<id>`; a purchase therefore checks the stock but does not lower the count that is
checked.

## What it does not do

- Only HTTP is served. The `grpc` section of the configuration is read but no gRPC
  listener is started.
- Orders and users are stored with SQLite: `data.mysql.addr` is taken as an SQLite file
  path, not a MySQL address.
- There is no service discovery, tracing or metrics.