"""Tests for the command line entry point."""

from __future__ import annotations

import asyncio

import pytest

import warcodex.__main__ as cli
from warcodex.config import Settings
from warcodex.repository import JsonDocumentStore
from warcodex.services.entity_service import EntityService


@pytest.fixture
def settings(tmp_path, monkeypatch):
    settings = Settings(data_dir=tmp_path / "data")
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return settings


def _seed(settings: Settings, count: int) -> EntityService:
    service = EntityService(JsonDocumentStore(settings.data_dir))

    async def _create():
        for index in range(count):
            await service.create("cos-traits", {"name": f"t{index}"})

    asyncio.run(_create())
    return service


def test_purge_collection(settings, capsys):
    service = _seed(settings, 17)

    assert cli.main(["purge-collection", "cos-traits", "--yes", "--batch-size", "5"]) == 0

    assert "deleted 17 document(s) from cos-traits" in capsys.readouterr().out
    assert asyncio.run(service.load("cos-traits")) == []


def test_purge_collection_asks_for_confirmation(settings, monkeypatch):
    service = _seed(settings, 2)
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert cli.main(["purge-collection", "cos-traits"]) == 1
    assert len(asyncio.run(service.load("cos-traits"))) == 2


def test_purge_rejects_bad_batch_size(settings):
    assert cli.main(["purge-collection", "cos-traits", "-y", "--batch-size", "0"]) == 2


def test_serve_command_parses_port(settings):  # noqa: ARG001
    args = cli.build_parser().parse_args(["serve", "--port", "9000"])
    assert args.port == 9000
    assert args.handler is cli._serve
