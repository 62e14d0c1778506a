# cli.py
import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style as PromptStyle

from productsync.auth import AuthRepository
from productsync.client import StoreClient
from productsync.config import ClientConfig
from productsync.forms import parse_product_form
from productsync.models import CATEGORIES, Product, ProductState
from productsync.repository import ProductRepository
from productsync.session import SessionCache
from productsync.viewmodels import AuthViewModel, ProductViewModel

console = Console()

# Custom prompt style for prompt_toolkit
custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: Sequence[Product]):
    if not products:
        console.print("[italic yellow]No products yet[/italic yellow]")
        return

    table = Table(
        title="📦 My Products",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=12)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=8)
    table.add_column("Category", width=15)

    for p in products:
        table.add_row(p.id[:12], p.name, f"S/ {p.price:.2f}", f"{p.stock} units", p.category or "N/A")
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def report_messages(vm: ProductViewModel):
    # each message is shown once, then cleared
    state = vm.state.value
    if state.error:
        console.print(show_status(state.error, False))
    elif state.success_message:
        console.print(show_status(state.success_message, True))
    vm.clear_messages()


def create_header(email_or_uid: Optional[str] = None):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ Product Manager",
        f"[bold blue]{email_or_uid or 'Not signed in'}[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers with autocomplete
# ---------------------------
class Prompter:

    def __init__(self):
        self._session = PromptSession(style=custom_style)

    async def ask(self, message: str, completer=None, default: str = "", password: bool = False) -> str:
        return await self._session.prompt_async(
            f"{message} ", completer=completer, default=default, is_password=password
        )

    async def confirm(self, message: str) -> bool:
        answer = await self.ask(f"{message} [y/N]", completer=WordCompleter(["y", "n"]))
        return answer.strip().lower() in ("y", "yes")


def product_completer(products: Sequence[Product]):
    return WordCompleter([p.id for p in products], ignore_case=True)


async def pick_product(prompter: Prompter, vm: ProductViewModel) -> Optional[Product]:
    products = vm.state.value.products
    if not products:
        console.print("[italic yellow]No products yet[/italic yellow]")
        return None
    pid = (await prompter.ask("Product ID", completer=product_completer(products))).strip()
    for p in products:
        if p.id == pid:
            return p
    console.print(f"[red]No product with ID '{pid}'[/red]")
    return None


async def ask_product(prompter: Prompter, user_id: str, current: Optional[Product] = None) -> Optional[Product]:
    name = await prompter.ask("Name *", default=current.name if current else "")
    price = await prompter.ask("Price (S/)", default=f"{current.price:.2f}" if current else "")
    stock = await prompter.ask("Stock", default=str(current.stock) if current else "")
    category = await prompter.ask(
        "Category", completer=WordCompleter(list(CATEGORIES), ignore_case=True),
        default=current.category if current else ""
    )
    product, errors = parse_product_form(
        name, price, stock, category, user_id, product_id=current.id if current else ""
    )
    for field, message in errors.items():
        console.print(f"[red]{field}: {message}[/red]")
    return product


# ---------------------------
# Screens
# ---------------------------
async def auth_screen(prompter: Prompter, auth_vm: AuthViewModel) -> bool:
    console.print(Panel("1  🔑 Sign in\n2  📝 Create account\nq  👋 Quit", title="Welcome", border_style="yellow"))
    choice = (await prompter.ask("Choose an option", completer=WordCompleter(["1", "2", "q"]))).strip().lower()

    if choice == "1":
        email = await prompter.ask("Email")
        password = await prompter.ask("Password", password=True)
        with console.status("Signing in..."):
            await auth_vm.login(email, password)
    elif choice == "2":
        email = await prompter.ask("Email")
        password = await prompter.ask("Password", password=True)
        confirm = await prompter.ask("Confirm password", password=True)
        with console.status("Creating account..."):
            await auth_vm.register(email, password, confirm)
    elif choice in ("q", "quit", "exit"):
        return False

    state = auth_vm.state.value
    if state.error:
        console.print(show_status(state.error, False))
        auth_vm.clear_error()
    return True


async def products_screen(prompter: Prompter, auth_vm: AuthViewModel, product_vm: ProductViewModel) -> bool:
    user_id = auth_vm.state.value.user_id
    product_vm.load_products(user_id)
    console.print(create_header(user_id))

    while auth_vm.state.value.is_logged_in:
        if product_vm.state.value.error:
            report_messages(product_vm)

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_row("1", "📦 List products", "4", "🗑️ Delete product")
        menu_table.add_row("2", "➕ New product", "5", "🚪 Sign out")
        menu_table.add_row("3", "✏️ Edit product", "q", "👋 Quit")
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = (await prompter.ask(
            "\nChoose an option", completer=WordCompleter(["1", "2", "3", "4", "5", "q"])
        )).strip().lower()

        if choice == "1":
            show_products(product_vm.state.value.products)

        elif choice == "2":
            product = await ask_product(prompter, user_id)
            if product is not None:
                await product_vm.create_product(product)
                report_messages(product_vm)

        elif choice == "3":
            current = await pick_product(prompter, product_vm)
            if current is not None:
                product = await ask_product(prompter, user_id, current)
                if product is not None:
                    await product_vm.update_product(current.id, product)
                    report_messages(product_vm)

        elif choice == "4":
            current = await pick_product(prompter, product_vm)
            if current is not None and await prompter.confirm(f"Delete '{current.name}'?"):
                await product_vm.delete_product(current.id)
                report_messages(product_vm)

        elif choice == "5":
            product_vm.stop_products()
            auth_vm.logout()

        elif choice in ("q", "quit", "exit"):
            return False

        console.print()
        console.rule(style="dim")
    return True


async def interactive(config: ClientConfig):
    client = StoreClient(base_url=config.base_url, timeout=config.timeout)
    auth_vm = AuthViewModel(AuthRepository(client, SessionCache(config.session_file)))
    product_vm = ProductViewModel(ProductRepository(client))
    prompter = Prompter()

    synced = {"products": None}

    def on_products(state: ProductState):
        if state.products != synced["products"]:
            synced["products"] = state.products
            console.print(f"[dim]🔄 {len(state.products)} products synced[/dim]")

    unsubscribe = product_vm.state.subscribe(on_products)
    console.clear()
    console.print(create_header())
    try:
        with patch_stdout():
            running = True
            while running:
                if auth_vm.state.value.is_logged_in:
                    running = await products_screen(prompter, auth_vm, product_vm)
                else:
                    running = await auth_screen(prompter, auth_vm)
    finally:
        unsubscribe()
        await product_vm.close()
        await auth_vm.close()
    console.print(Panel.fit("[bold green]Goodbye! 👋[/bold green]", title="Goodbye"))


async def watch(config: ClientConfig) -> int:
    client = StoreClient(base_url=config.base_url, timeout=config.timeout)
    auth_vm = AuthViewModel(AuthRepository(client, SessionCache(config.session_file)))
    user_id = auth_vm.state.value.user_id
    if not auth_vm.state.value.is_logged_in:
        console.print("[red]Not signed in. Run the interactive CLI first.[/red]")
        return 1

    product_vm = ProductViewModel(ProductRepository(client))
    product_vm.load_products(user_id)
    try:
        async for state in product_vm.state.watch():
            if state.error:
                console.print(show_status(state.error, False))
                return 1
            console.rule(f"[dim]{datetime.now().strftime('%H:%M:%S')}[/dim]")
            show_products(state.products)
    finally:
        await product_vm.close()
    return 0


def setup_logging(level: str):
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Product Manager CLI")
    parser.add_argument("--base-url", help="docstore URL (default: $PRODUCTSYNC_BASE_URL)")
    parser.add_argument("--watch", action="store_true", help="Print the product list every time it changes")
    args = parser.parse_args(argv)

    config = ClientConfig.from_env()
    if args.base_url:
        config = ClientConfig(
            base_url=args.base_url, timeout=config.timeout,
            session_file=config.session_file, log_level=config.log_level,
        )
    setup_logging(config.log_level)

    try:
        if args.watch:
            return asyncio.run(watch(config))
        asyncio.run(interactive(config))
        return 0
    except (KeyboardInterrupt, EOFError):
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
