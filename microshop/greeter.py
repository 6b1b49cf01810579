"""The greeter example service shared by every microservice."""

from __future__ import annotations

import logging
from dataclasses import dataclass

_log = logging.getLogger(__name__)


@dataclass
class Greeter:
    """A greeting subject."""

    hello: str


class GreeterRepo:
    """In-memory storage for greeters, keyed by the order they were saved in."""

    def __init__(self) -> None:
        self._items: dict[int, Greeter] = {}
        self._next_id = 1

    def save(self, greeter: Greeter) -> Greeter:
        """Store a greeter and return it."""
        self._items[self._next_id] = greeter
        self._next_id += 1
        return greeter

    def update(self, greeter: Greeter) -> Greeter:
        """Replace the stored greeter with the same greeting, or store it anew."""
        for key, stored in self._items.items():
            if stored.hello == greeter.hello:
                self._items[key] = greeter
                return greeter
        return self.save(greeter)

    def find_by_id(self, greeter_id: int) -> Greeter | None:
        """Return the greeter saved under ``greeter_id``, if any."""
        return self._items.get(greeter_id)

    def list_by_hello(self, hello: str) -> list[Greeter]:
        """Return every stored greeter with the given greeting."""
        return [g for g in self._items.values() if g.hello == hello]

    def list_all(self) -> list[Greeter]:
        """Return every stored greeter in the order saved."""
        return list(self._items.values())


class GreeterUsecase:
    """Business logic for greeters."""

    def __init__(self, repo: GreeterRepo) -> None:
        self.repo = repo

    def create_greeter(self, greeter: Greeter) -> Greeter:
        """Store a greeter and return the stored one."""
        _log.info("CreateGreeter: %s", greeter.hello)
        return self.repo.save(greeter)


class GreeterService:
    """Service layer answering hello requests."""

    def __init__(self, usecase: GreeterUsecase) -> None:
        self.usecase = usecase

    def say_hello(self, name: str) -> str:
        """Return the greeting message for ``name``."""
        greeter = self.usecase.create_greeter(Greeter(hello=name))
        return "Hello " + greeter.hello