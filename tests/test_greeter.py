import logging

import pytest

from microshop.greeter import Greeter, GreeterRepo, GreeterService, GreeterUsecase


class _FailingRepo(GreeterRepo):
    def save(self, greeter):
        raise RuntimeError("storage down")


class _RecordingRepo(GreeterRepo):
    def __init__(self):
        self.saved = []

    def save(self, greeter):
        self.saved.append(greeter)
        return greeter


def test_say_hello_prefixes_name():
    service = GreeterService(GreeterUsecase(GreeterRepo()))
    assert service.say_hello("world") == "Hello world"


def test_say_hello_with_empty_name():
    service = GreeterService(GreeterUsecase(GreeterRepo()))
    assert service.say_hello("") == "Hello "


def test_repo_echoes_and_finds_nothing():
    repo = GreeterRepo()
    greeter = Greeter(hello="x")
    assert repo.save(greeter) is greeter
    assert repo.update(greeter) is greeter
    assert repo.find_by_id(1) is None
    assert repo.list_by_hello("x") == []
    assert repo.list_all() == []


def test_create_greeter_saves_through_repo():
    repo = _RecordingRepo()
    usecase = GreeterUsecase(repo)
    result = usecase.create_greeter(Greeter(hello="alice"))
    assert result == Greeter(hello="alice")
    assert repo.saved == [Greeter(hello="alice")]


def test_create_greeter_logs(caplog):
    usecase = GreeterUsecase(GreeterRepo())
    with caplog.at_level(logging.INFO, logger="microshop.greeter"):
        usecase.create_greeter(Greeter(hello="bob"))
    assert "CreateGreeter: bob" in caplog.messages


def test_repo_error_propagates_through_service():
    service = GreeterService(GreeterUsecase(_FailingRepo()))
    with pytest.raises(RuntimeError, match="storage down"):
        service.say_hello("carol")