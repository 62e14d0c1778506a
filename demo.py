#!/usr/bin/env python
import asyncio

from productsync.client import StoreClient
from productsync.config import ClientConfig
from productsync.models import Product
from productsync.repository import ProductRepository
from productsync.viewmodels import ProductViewModel


async def wait_for(vm: ProductViewModel, count: int):
    async for state in vm.state.watch():
        if len(state.products) == count:
            return state


async def main():
    config = ClientConfig.from_env()
    c = StoreClient(base_url=config.base_url, timeout=config.timeout)

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    c.reset()

    # -----------------------------
    # Register a user
    # -----------------------------
    session = c.register("alice@example.com", "secret1")
    c.set_api_key(session.token)
    print(f"Registered {session.email} as {session.uid}")

    vm = ProductViewModel(ProductRepository(c))
    vm.load_products(session.uid)

    # -----------------------------
    # Create products
    # -----------------------------
    print("\nCreating products...")
    pen = Product(user_id=session.uid, name="Pen", price=1.5, stock=10, category="Hogar")
    ball = Product(user_id=session.uid, name="Ball", price=25.0, stock=3, category="Deportes")
    await vm.create_product(pen)
    print("after create:", vm.state.value.success_message, "| products so far:", len(vm.state.value.products))
    await vm.create_product(ball)
    state = await asyncio.wait_for(wait_for(vm, 2), timeout=5)
    for p in state.products:
        print(" ", p.id, p.name, p.price, p.stock, p.category)

    # -----------------------------
    # Update and delete
    # -----------------------------
    first = state.products[0]
    print(f"\nSetting stock of {first.name} to 0...")
    await vm.update_product(first.id, first.model_copy(update={"stock": 0}))
    print(vm.state.value.success_message)

    print(f"\nDeleting {first.name}...")
    await vm.delete_product(first.id)
    print(vm.state.value.success_message)
    state = await asyncio.wait_for(wait_for(vm, 1), timeout=5)
    print("remaining:", [p.name for p in state.products])

    await vm.close()


if __name__ == "__main__":
    asyncio.run(main())
