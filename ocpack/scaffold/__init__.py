# ocpack/scaffold/__init__.py
from .initializer import InitRequest, InitResult, Scaffolder

__all__ = ["InitRequest", "InitResult", "Scaffolder"]
