import pytest

from microshop.database import open_database
from microshop.orders import ORDER_SCHEMA, Order, OrderRepo, OrderService, OrderUseCase


@pytest.fixture
def database():
    db = open_database(":memory:", ORDER_SCHEMA, attempts=1, delay=0)
    yield db
    db.close()


@pytest.fixture
def repo(database):
    return OrderRepo(database)


def test_create_order_assigns_id_and_timestamps(repo):
    order = repo.create_order(Order(user_id=3, repertory_id=9, quantity=2))
    assert order.id > 0
    assert order.created_at is not None and order.updated_at == order.created_at
    assert order.deleted_at is None


def test_created_orders_get_distinct_ids(repo):
    first = repo.create_order(Order(user_id=1, repertory_id=1, quantity=1))
    second = repo.create_order(Order(user_id=1, repertory_id=1, quantity=1))
    assert first.id != second.id
    assert second.id > first.id


def test_get_order_round_trip(repo):
    created = repo.create_order(Order(user_id=4, repertory_id=8, quantity=5))
    fetched = repo.get_order(created.id)
    assert fetched == created


def test_get_missing_order_raises(repo):
    with pytest.raises(LookupError, match="record not found"):
        repo.get_order(12345)


def test_usecase_delegates_to_repo(repo):
    usecase = OrderUseCase(repo)
    created = usecase.create_order(Order(user_id=2, repertory_id=6, quantity=7))
    assert usecase.get_order(created.id).quantity == 7


def test_service_create_order_reports_success(repo):
    service = OrderService(OrderUseCase(repo))
    assert service.create_order(11, 22, 33) == {"success": True}
    stored = repo.get_order(1)
    assert (stored.user_id, stored.repertory_id, stored.quantity) == (11, 22, 33)


def test_service_get_order_maps_fields(repo):
    created = repo.create_order(Order(user_id=11, repertory_id=22, quantity=33))
    service = OrderService(OrderUseCase(repo))
    reply = service.get_order(created.id)
    assert reply == {
        "success": True,
        "order": {
            "id": created.id,
            "user_id": 11,
            "good_id": 22,
            "good_quantity": 33,
        },
    }


def test_service_get_missing_order_raises(repo):
    service = OrderService(OrderUseCase(repo))
    with pytest.raises(LookupError):
        service.get_order(99)