import asyncio

from rich import print

from storefront.session import build_storefront
from storefront.storage import MemoryStorage


async def main():
    sf = build_storefront(storage=MemoryStorage())

    # Reset store if available
    sf.client.reset()

    # Guest wishlist only keeps product ids
    for pid in (1, 2, 3, 4, 999):
        sf.wishlist.add(pid)

    # Hydrate the wishlist: one request per product, all in flight together
    print("\n⚡ Fetching wishlist products concurrently...")
    ids = [item.product_id for item in sf.wishlist.guest_wishlist]
    products = await sf.client.fetch_products_async(ids)

    for pid, product in zip(ids, products):
        if product is None:
            print(f"❌ product {pid} could not be loaded")
        else:
            print(f"✅ {product.name}: ${product.current_price:.2f} ({'in stock' if product.in_stock else 'sold out'})")

    sf.close()


if __name__ == "__main__":
    asyncio.run(main())
