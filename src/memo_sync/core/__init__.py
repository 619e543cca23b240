"""Async helpers shared by gateways, repositories and the sync use-case."""

from .async_utils import gather_all, init_semaphore, run_sync, run_sync_limited

__all__ = ["gather_all", "init_semaphore", "run_sync", "run_sync_limited"]
