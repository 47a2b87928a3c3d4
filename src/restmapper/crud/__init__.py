"""CRUD dispatch: per-request models and the registry that loads them."""

from restmapper.crud.model import DispatchState, Model, WriteResult
from restmapper.crud.registry import ModelRegistry

__all__ = ["DispatchState", "Model", "ModelRegistry", "WriteResult"]
