"""Request dependencies — hand the application's long-lived objects to routes."""

from fastapi import Request

from config import AppConfig
from slugs import SlugCodec
from api.pastas.services.pasta_store import PastaStore


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_store(request: Request) -> PastaStore:
    return request.app.state.store


def get_codec(request: Request) -> SlugCodec:
    return request.app.state.codec
