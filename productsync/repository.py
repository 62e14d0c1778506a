import logging
from typing import AsyncIterator, List

from .models import Product, PRODUCTS_COLLECTION, OWNER_FIELD
from .outcome import Outcome, capture
from .store import DocumentStore

logger = logging.getLogger(__name__)


class ProductRepository:
    """Products owned by one user, backed by a DocumentStore.

    ``products_realtime`` is the live feed; the three mutations are single
    round trips that report their result as an Outcome and never raise.
    """

    def __init__(self, store: DocumentStore, collection: str = PRODUCTS_COLLECTION):
        self._store = store
        self._collection = collection

    async def products_realtime(self, user_id: str) -> AsyncIterator[List[Product]]:
        """Yield the full list of ``user_id``'s products on every change.

        Documents that do not parse as a Product are left out of the
        snapshot. A subscription error ends the iteration by raising it.
        The listener is released exactly once on every exit path, so
        consumers that stop early should close the generator
        (``contextlib.aclosing``) rather than leave it to the GC.
        """
        subscription = await self._store.listen(self._collection, OWNER_FIELD, user_id)
        try:
            async for documents in subscription:
                yield _to_products(documents)
        finally:
            await subscription.close()

    async def create_product(self, product: Product) -> Outcome[str]:
        return await capture(self._store.add_document(self._collection, product.to_document()))

    async def update_product(self, product_id: str, product: Product) -> Outcome[None]:
        return await capture(self._store.set_document(self._collection, product_id, product.to_document()))

    async def delete_product(self, product_id: str) -> Outcome[None]:
        return await capture(self._store.delete_document(self._collection, product_id))


def _to_products(documents) -> List[Product]:
    products = []
    for doc in documents:
        product = Product.from_document(doc) if isinstance(doc, dict) else None
        if product is None:
            logger.debug("dropping malformed document %r", doc.get("id") if isinstance(doc, dict) else doc)
            continue
        products.append(product)
    return products
