# cli.py - admin console for the storefront catalog
import argparse
import json
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.catalog_client import CatalogClient
from storefront import config

console = Console()
c = CatalogClient(base_url=config.API_URL, api_key=config.admin_api_key())


# Global state for status messages and caching
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def _stock_cell(inventory: int, low_stock_threshold: int = config.LOW_STOCK_THRESHOLD) -> str:
    if inventory == 0:
        return "[bold red]0[/bold red]"
    if inventory < low_stock_threshold:
        return f"[yellow]{inventory}[/yellow]"
    return str(inventory)


def show_products(products: List[Dict[str, Any]], title: str = "📦 Products Catalog"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=6)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Slug", width=20)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=8)
    table.add_column("Category", width=15)
    table.add_column("Updated", style="dim", width=24)

    for p in products:
        table.add_row(
            p.get("id", "N/A"),
            p.get("name", "N/A"),
            p.get("slug", "N/A"),
            f"${p.get('price', 0):.2f}",
            _stock_cell(p.get("inventory", 0)),
            p.get("category", "N/A"),
            p.get("lastUpdated", "")
        )
    console.print(table)


def show_stats(stats: Dict[str, Any]):
    if not stats:
        console.print("[italic yellow]No statistics available[/italic yellow]")
        return

    summary = Table.grid(padding=(0, 4))
    summary.add_column(style="bold")
    summary.add_column(justify="right")
    summary.add_row("📦 Total products", str(stats.get("totalProducts", 0)))
    summary.add_row("📈 Total inventory", str(stats.get("totalInventory", 0)))
    summary.add_row("⚠️ Low stock items", f"[yellow]{len(stats.get('lowStockProducts', []))}[/yellow]")
    summary.add_row("⛔ Out of stock", f"[red]{len(stats.get('outOfStockProducts', []))}[/red]")
    summary.add_row("🏷️ Categories", ", ".join(stats.get("categories", [])) or "-")
    console.print(Panel(summary, title="📊 Inventory Dashboard", border_style="green"))

    breakdown = stats.get("categoryBreakdown", [])
    if breakdown:
        table = Table(title="🏷️ By category", box=box.ROUNDED, header_style="bold green")
        table.add_column("Category", width=20)
        table.add_column("Products", justify="right", width=10)
        table.add_column("Units", justify="right", width=10)
        for row in breakdown:
            table.add_row(row.get("category", "N/A"), str(row.get("productCount", 0)),
                          str(row.get("totalInventory", 0)))
        console.print(table)

    low_stock = stats.get("lowStockProducts", [])
    if low_stock:
        show_products(low_stock, title="⚠️ Low stock")


def show_health(health: Dict[str, Any]):
    catalog = health.get("catalog", {})
    healthy = health.get("status") == "healthy"
    style = "green" if healthy else "red"
    lines = [
        f"Status: [{style}]{health.get('status', 'unknown')}[/{style}]",
        f"Products: {catalog.get('productCount', 0)}",
        f"Uptime: {health.get('uptime', 0):.0f}s",
    ]
    if catalog.get("error"):
        lines.append(f"[red]Catalog error: {catalog['error']}[/red]")
    console.print(Panel.fit("\n".join(lines), title="🩺 Health", border_style=style))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper with exception handling
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner and returns its result.
    Failures are reported in the status panel and turn into None.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer():
    global product_cache
    if not product_cache:
        product_cache = try_api(c.list_products) or []

    slugs = [p.get("slug", "") for p in product_cache]
    ids = [p.get("id", "") for p in product_cache]
    return WordCompleter([s for s in (slugs + ids) if s], ignore_case=True)


def get_category_completer():
    categories = {p.get("category", "") for p in product_cache}
    return WordCompleter(sorted(cat for cat in categories if cat), ignore_case=True)


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ Storefront Admin",
        "[bold blue]Catalog console[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 10.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def slugify(name: str) -> str:
    return "-".join("".join(ch if ch.isalnum() else " " for ch in name.lower()).split())


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache

    console.clear()
    console.print(create_header())

    product_cache = try_api(c.list_products) or []

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "5", "✏️ Update product"),
            ("2", "🔍 Search products", "6", "📊 Inventory dashboard"),
            ("3", "ℹ️ Get product by slug/ID", "7", "⭐ Recommendations"),
            ("4", "➕ Create product", "8", "🩺 Health"),
            ("", "", "q", "👋 Quit")
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 9)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded successfully")
            if products is not None:
                product_cache = products
                show_products(products)

        elif choice == "2":
            term = prompt_with_autocomplete("Search term (blank for any)")
            category = prompt_with_autocomplete("Category (blank for all)", completer=get_category_completer())
            in_stock = Confirm.ask("In-stock only?", default=False)
            res = try_api(c.list_products, q=term or None, category=category or None,
                          available_only=in_stock, success_msg="Search completed")
            if res is not None:
                show_products(res)

        elif choice == "3":
            key = prompt_with_autocomplete("Enter product slug or ID", completer=get_product_completer())
            resp = try_api(c.get_product, key, success_msg=f"Product {key} loaded")
            if resp:
                show_products([resp])

        elif choice == "4":
            name = prompt_with_autocomplete("Product name")
            slug = prompt_with_autocomplete("Slug", default=slugify(name))
            description = prompt_with_autocomplete("Description")
            price = ask_float("💰 Price in dollars", default=10.0)
            inventory = IntPrompt.ask("📦 Inventory", default=1)
            category = prompt_with_autocomplete("🏷️ Category", completer=get_category_completer(), default="Electronics")
            resp = try_api(
                c.create_product, name, slug, price, inventory, description, category,
                success_msg=f"Product '{name}' created"
            )
            if resp:
                show_products([resp])
                product_cache = try_api(c.list_products) or []

        elif choice == "5":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            current = try_api(c.get_product, pid)
            if not current:
                continue
            fields: Dict[str, Any] = {}
            price = ask_float("💰 Price", default=current.get("price", 0))
            if price != current.get("price"):
                fields["price"] = price
            inventory = IntPrompt.ask("📦 Inventory", default=current.get("inventory", 0))
            if inventory != current.get("inventory"):
                fields["inventory"] = inventory
            if Confirm.ask("Edit name/description/category too?", default=False):
                fields["name"] = prompt_with_autocomplete("Name", default=current.get("name", ""))
                fields["description"] = prompt_with_autocomplete("Description", default=current.get("description", ""))
                fields["category"] = prompt_with_autocomplete("Category", completer=get_category_completer(),
                                                              default=current.get("category", ""))
            resp = try_api(c.update_product, current["id"], **fields, success_msg=f"Product {current['id']} updated")
            if resp:
                show_products([resp])
                product_cache = try_api(c.list_products) or []

        elif choice == "6":
            stats = try_api(c.inventory_stats, success_msg="Dashboard refreshed")
            if stats:
                show_stats(stats)
                top = try_api(c.top_products)
                if top:
                    show_products(top, title="🏆 Top products by stock value")

        elif choice == "7":
            recs = try_api(c.recommendations, success_msg="Recommendations loaded")
            if recs is not None:
                show_products(recs, title="⭐ Recommended for you")

        elif choice == "8":
            health = try_api(c.health)
            if health:
                show_health(health)

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


# ---------------------------
# One-shot commands
# ---------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront catalog admin")
    parser.add_argument("--base-url", default=config.API_URL, help="API base URL")
    parser.add_argument("--api-key", default=None, help="Admin API key (defaults to ADMIN_API_KEY)")
    subparsers = parser.add_subparsers(dest="command")

    lp = subparsers.add_parser("list-products", help="List products, optionally filtered")
    lp.add_argument("--q", help="Search name and description")
    lp.add_argument("--category", help="Filter by category")
    lp.add_argument("--min-price", type=float)
    lp.add_argument("--max-price", type=float)
    lp.add_argument("--available-only", action="store_true", help="Only products in stock")

    gp = subparsers.add_parser("get-product", help="Get a product by slug or ID")
    gp.add_argument("key", help="Slug or ID")

    cp = subparsers.add_parser("create-product", help="Create a product")
    cp.add_argument("--name", required=True)
    cp.add_argument("--slug")
    cp.add_argument("--price", type=float, required=True)
    cp.add_argument("--inventory", type=int, required=True)
    cp.add_argument("--description", default="")
    cp.add_argument("--category", default="Electronics")

    up = subparsers.add_parser("update-product", help="Update fields of a product")
    up.add_argument("product_id")
    up.add_argument("--name")
    up.add_argument("--slug")
    up.add_argument("--price", type=float)
    up.add_argument("--inventory", type=int)
    up.add_argument("--description")
    up.add_argument("--category")

    subparsers.add_parser("stats", help="Inventory statistics")
    tp = subparsers.add_parser("top", help="Top products by stock value")
    tp.add_argument("--limit", type=int, default=5)
    rp = subparsers.add_parser("recommend", help="Random product picks")
    rp.add_argument("--limit", type=int, default=8)
    subparsers.add_parser("health", help="Service and catalog health")
    return parser


def run_command(args: argparse.Namespace, client: CatalogClient):
    if args.command == "list-products":
        return client.list_products(args.q, args.category, args.min_price, args.max_price, args.available_only)
    if args.command == "get-product":
        return client.get_product(args.key)
    if args.command == "create-product":
        return client.create_product(args.name, args.slug or slugify(args.name), args.price, args.inventory,
                                     args.description, args.category)
    if args.command == "update-product":
        fields = {k: getattr(args, k) for k in ("name", "slug", "price", "inventory", "description", "category")
                  if getattr(args, k) is not None}
        return client.update_product(args.product_id, **fields)
    if args.command == "stats":
        return client.inventory_stats()
    if args.command == "top":
        return client.top_products(args.limit)
    if args.command == "recommend":
        return client.recommendations(args.limit)
    if args.command == "health":
        return client.health()
    raise ValueError(f"unknown command {args.command!r}")


def main(argv: Optional[List[str]] = None):
    global c
    args = build_parser().parse_args(argv)
    c = CatalogClient(base_url=args.base_url, api_key=args.api_key or config.admin_api_key())
    if args.command is None:
        menu()
        return
    console.print_json(json.dumps(run_command(args, c)))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
