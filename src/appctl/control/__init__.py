"""Lifecycle control: query, decisions, reconciliation and orchestration."""

from appctl.control.controller import AppController, LifecycleResult

__all__ = ["AppController", "LifecycleResult"]
