"""State holders that sit between a front-end and the repositories.

Each view-model owns exactly one observable state value and a scope of
asyncio tasks. Closing the view-model cancels the scope; a cancelled
task never writes to the state again.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Awaitable, Callable, Optional, Set

from .auth import AuthRepository
from .errors import StoreError
from .forms import validate_credentials
from .models import AuthState, Product, ProductState, Session
from .outcome import Outcome
from .repository import ProductRepository
from .state import StateHolder

logger = logging.getLogger(__name__)

PRODUCT_CREATED = "Product created successfully"
PRODUCT_UPDATED = "Product updated successfully"
PRODUCT_DELETED = "Product deleted successfully"
CREATE_FAILED = "Error creating product"
UPDATE_FAILED = "Error updating product"
DELETE_FAILED = "Error deleting product"
LOAD_FAILED = "Error loading products"
UNKNOWN_ERROR = "Unknown error"


class ViewModel:

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def launch(self, coro) -> asyncio.Task:
        """Run ``coro`` in this view-model's scope. Needs a running loop."""
        if self._closed:
            coro.close()
            raise RuntimeError(f"{type(self).__name__} is closed")
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("task in %s failed", type(self).__name__, exc_info=task.exception())

    async def close(self) -> None:
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class ProductViewModel(ViewModel):
    """The product list as the UI knows it.

    Snapshots from the live feed replace ``products``; mutations only touch
    the flags and messages. A created or updated product shows up in
    ``products`` once the feed delivers it, not when the write returns.
    """

    def __init__(self, repository: ProductRepository):
        super().__init__()
        self._repository = repository
        self._state: StateHolder[ProductState] = StateHolder(ProductState())
        self._mutations: Set[asyncio.Task] = set()
        # create/update tasks still holding the loading flag up
        self._loading: Set[asyncio.Task] = set()
        self._collector: Optional[asyncio.Task] = None

    @property
    def state(self) -> StateHolder[ProductState]:
        return self._state

    def load_products(self, user_id: str) -> asyncio.Task:
        if self._collector is not None and not self._collector.done():
            self._collector.cancel()
        self._collector = self.launch(self._collect(user_id))
        return self._collector

    async def _collect(self, user_id: str) -> None:
        try:
            async with aclosing(self._repository.products_realtime(user_id)) as snapshots:
                async for products in snapshots:
                    self._state.update(products=tuple(products))
        except StoreError as exc:
            logger.warning("product feed for %s ended: %s", user_id, exc)
            self._state.update(error=str(exc) or LOAD_FAILED)

    def create_product(self, product: Product) -> asyncio.Task:
        return self._mutate(
            lambda: self._repository.create_product(product), PRODUCT_CREATED, CREATE_FAILED, tracks_loading=True
        )

    def update_product(self, product_id: str, product: Product) -> asyncio.Task:
        return self._mutate(
            lambda: self._repository.update_product(product_id, product), PRODUCT_UPDATED, UPDATE_FAILED,
            tracks_loading=True,
        )

    def delete_product(self, product_id: str) -> asyncio.Task:
        return self._mutate(
            lambda: self._repository.delete_product(product_id), PRODUCT_DELETED, DELETE_FAILED,
            tracks_loading=False,
        )

    def stop_products(self) -> None:
        """Drop the feed and abandon pending writes; their results never reach the state."""
        if self._collector is not None:
            self._collector.cancel()
            self._collector = None
        for task in self._mutations:
            task.cancel()
        self._mutations.clear()
        self._loading.clear()
        self._state.set(ProductState())

    def clear_messages(self) -> None:
        self._state.update(error=None, success_message=None)

    def _mutate(
        self, call: Callable[[], Awaitable[Outcome]], success_message: str, error_message: str, tracks_loading: bool
    ) -> asyncio.Task:
        task = self.launch(self._complete(call, success_message, error_message, tracks_loading))
        self._mutations.add(task)
        task.add_done_callback(self._mutations.discard)
        if tracks_loading:
            self._loading.add(task)
            task.add_done_callback(self._loading.discard)
            self._state.update(is_loading=True)
        return task

    async def _complete(
        self, call: Callable[[], Awaitable[Outcome]], success_message: str, error_message: str, tracks_loading: bool
    ) -> Outcome:
        outcome = await call()

        if outcome.is_success:
            changes = {"success_message": success_message, "error": None}
        else:
            logger.warning("%s: %s", error_message, outcome.error)
            changes = {"error": outcome.message(error_message), "success_message": None}
        if tracks_loading:
            self._loading.discard(asyncio.current_task())
            changes["is_loading"] = bool(self._loading)
        self._state.update(**changes)
        return outcome


class AuthViewModel(ViewModel):
    """Sign-in state, seeded from the cached session."""

    def __init__(self, repository: AuthRepository):
        super().__init__()
        self._repository = repository
        session = repository.current_user()
        self._state: StateHolder[AuthState] = StateHolder(
            AuthState(is_logged_in=session is not None, user_id=session.uid if session else None)
        )

    @property
    def state(self) -> StateHolder[AuthState]:
        return self._state

    def login(self, email: str, password: str) -> asyncio.Task:
        return self._authenticate(
            lambda: self._repository.login(email, password), validate_credentials(email, password)
        )

    def register(self, email: str, password: str, confirm_password: Optional[str] = None) -> asyncio.Task:
        return self._authenticate(
            lambda: self._repository.register(email, password),
            validate_credentials(email, password, confirm_password),
        )

    def logout(self) -> None:
        self._repository.logout()
        self._state.set(AuthState(is_logged_in=False))

    def clear_error(self) -> None:
        self._state.update(error=None)

    def _authenticate(self, call: Callable[[], Awaitable[Outcome[Session]]], problem: Optional[str]) -> asyncio.Task:
        task = self.launch(self._complete(call, problem))
        self._state.set(AuthState(error=problem) if problem else AuthState(is_loading=True))
        return task

    async def _complete(self, call: Callable[[], Awaitable[Outcome[Session]]], problem: Optional[str]) -> Outcome:
        if problem:
            return Outcome.failure(ValueError(problem))
        outcome = await call()
        if outcome.is_success:
            self._state.set(AuthState(is_logged_in=True, user_id=outcome.value.uid))
        else:
            self._state.set(AuthState(error=outcome.message(UNKNOWN_ERROR)))
        return outcome
