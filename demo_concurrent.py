import asyncio

from productsync.client import StoreClient
from productsync.config import ClientConfig
from productsync.models import Product
from productsync.repository import ProductRepository
from productsync.viewmodels import ProductViewModel


def signed_in_client(config: ClientConfig, email: str) -> tuple:
    c = StoreClient(base_url=config.base_url, timeout=config.timeout)
    session = c.register(email, "secret1")
    c.set_api_key(session.token)
    return c, session


async def main():
    config = ClientConfig.from_env()
    StoreClient(base_url=config.base_url).reset()

    alice, alice_session = signed_in_client(config, "alice@example.com")
    bob, bob_session = signed_in_client(config, "bob@example.com")

    alice_vm = ProductViewModel(ProductRepository(alice))
    bob_vm = ProductViewModel(ProductRepository(bob))
    alice_vm.load_products(alice_session.uid)
    bob_vm.load_products(bob_session.uid)

    # Run concurrent writes from both users
    print("\n⚡ Creating products concurrently...")
    tasks = [
        alice_vm.create_product(Product(user_id=alice_session.uid, name=f"Alice item {i}", price=i, stock=i, category="Otros"))
        for i in range(5)
    ] + [
        bob_vm.create_product(Product(user_id=bob_session.uid, name=f"Bob item {i}", price=i, stock=i, category="Ropa"))
        for i in range(3)
    ]
    print("alice loading while writes are in flight:", alice_vm.state.value.is_loading)
    await asyncio.gather(*tasks)
    print("alice loading after all writes:", alice_vm.state.value.is_loading)

    # A foreign write is rejected by the store's owner rule
    print("\n🚫 Alice tries to write a product owned by Bob...")
    outcome = await alice_vm.create_product(Product(user_id=bob_session.uid, name="Sneaky", price=1, stock=1))
    print("outcome error:", outcome.error, "| state error:", alice_vm.state.value.error)

    await asyncio.sleep(0.5)
    print("\n📦 Alice sees:", sorted(p.name for p in alice_vm.state.value.products))
    print("📦 Bob sees:", sorted(p.name for p in bob_vm.state.value.products))

    await alice_vm.close()
    await bob_vm.close()


if __name__ == "__main__":
    asyncio.run(main())
