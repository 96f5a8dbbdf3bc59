# storefront/cli.py
import click
from werkzeug.security import generate_password_hash

from .extensions import db
from .model import Order, Product, User
from .utils.money import D, format_zar

SAMPLE_CATALOG = [
    {"name": "Whey Protein Isolate", "category": "Protein", "price": "649.00", "stock": 40,
     "flavors": ["Chocolate", "Vanilla", "Strawberry"], "sizes": ["1kg", "2kg"], "featured": True},
    {"name": "Creatine Monohydrate", "category": "Performance", "price": "299.00", "stock": 75,
     "sizes": ["300g", "500g"]},
    {"name": "Pre-Workout Ignite", "category": "Performance", "price": "399.00", "stock": 30,
     "flavors": ["Blue Raspberry", "Watermelon"]},
    {"name": "BCAA Recovery", "category": "Recovery", "price": "249.00", "stock": 60,
     "flavors": ["Lemon Lime", "Tropical"]},
    {"name": "Multivitamin Daily", "category": "Health", "price": "149.00", "stock": 120},
    {"name": "Shaker Bottle", "category": "Accessories", "price": "89.00", "stock": 200},
]

@click.command("create-customer")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True, help="First and last name")
@click.option("--phone")
@click.option("--address", "address_line_1")
@click.option("--city")
@click.option("--state")
@click.option("--postal-code", "postal_code")
@click.option("--country")
def create_customer(email, password, name, **profile):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    first, _, last = name.strip().partition(" ")
    u = User(
        email=email,
        password_hash=generate_password_hash(password),
        role="customer",
        first_name=first,
        last_name=last or None,
        **{k: v for k, v in profile.items() if v},
    )
    db.session.add(u); db.session.commit()
    click.echo(f"Customer created: {u.id} {u.email}")

@click.command("seed-catalog")
def seed_catalog():
    if Product.query.first():
        click.echo("Catalog already has products; nothing to do"); return
    for row in SAMPLE_CATALOG:
        db.session.add(Product(**{**row, "price": D(row["price"])}))
    db.session.commit()
    click.echo(f"{len(SAMPLE_CATALOG)} products added")

@click.command("show-order")
@click.argument("order_id")
def show_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise click.ClickException(f"order {order_id} not found")
    click.echo(f"Order {order.id}  [{order.status}/{order.payment_status}]  user={order.user_id}")
    click.echo(f"  {order.customer_name} <{order.customer_email}>")
    for line in order.lines:
        click.echo(
            f"  {line.quantity} x {line.product_name} @ {format_zar(line.unit_price)}"
            f" = {format_zar(line.line_total)}"
        )
    click.echo(f"  subtotal {format_zar(order.subtotal)}")
    click.echo(f"  shipping {format_zar(order.shipping_cost)}")
    click.echo(f"  VAT      {format_zar(order.tax_amount)}")
    click.echo(f"  total    {format_zar(order.total_amount)}")

def register_cli(app):
    app.cli.add_command(create_customer)
    app.cli.add_command(seed_catalog)
    app.cli.add_command(show_order)
