"""Storefront database management CLI.

Creates and drops the schema, and seeds an admin user and demo products.

Usage:
    python src/manage.py setup-db                   # Create all tables
    python src/manage.py drop-db                    # Drop all tables
    python src/manage.py seed-admin admin@shop.test # Register an admin user
    python src/manage.py seed-products              # Insert demo products
"""

import argparse
import sys

from catalogue.product.product import ProductCatalog
from identity.user.user import UserDirectory, UserRole
from shared.config import get_settings
from shared.db import build_engine, build_session_factory, drop_db, setup_db

DEMO_PRODUCTS = [
    {"name": "Ankara Print Shirt", "price": 15000.0, "description": "Cotton shirt in a bold Ankara print"},
    {"name": "Leather Sandals", "price": 22000.0, "description": "Handmade leather sandals"},
    {"name": "Beaded Necklace", "price": 8500.0, "description": "Hand-strung glass bead necklace"},
    {"name": "Woven Tote Bag", "price": 12000.0, "description": "Raffia tote bag", "out_of_stock": True},
]


def setup_database(engine):
    print("Creating database schema...")
    setup_db(engine)
    print("Done.")


def drop_database(engine):
    print("Dropping database schema...")
    drop_db(engine)
    print("Done.")


def seed_admin(engine, email, name):
    session = build_session_factory(engine)()
    try:
        users = UserDirectory(session)
        existing = users.find_by_email(email)
        if existing is not None:
            print(f"User {email} already exists (role: {existing.role}).")
            return existing
        user = users.register(email=email, name=name, role=UserRole.ADMIN)
        print(f"Admin {email} created with id {user.id}.")
        return user
    finally:
        session.close()


def seed_products(engine):
    session = build_session_factory(engine)()
    try:
        catalog = ProductCatalog(session)
        for fields in DEMO_PRODUCTS:
            product = catalog.add(**fields)
            print(f"  {product.name} ({product.id})")
        print(f"Seeded {len(DEMO_PRODUCTS)} products.")
    finally:
        session.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Storefront database management")
    parser.add_argument("--database-url", help="Override SHOP_DATABASE_URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    admin_parser = subparsers.add_parser("seed-admin", help="Register an admin user")
    admin_parser.add_argument("email")
    admin_parser.add_argument("--name", default="Administrator")

    subparsers.add_parser("seed-products", help="Insert demo products")

    args = parser.parse_args(argv)
    engine = build_engine(args.database_url or get_settings().database_url)

    if args.command == "setup-db":
        setup_database(engine)
    elif args.command == "drop-db":
        drop_database(engine)
    elif args.command == "seed-admin":
        setup_db(engine)
        seed_admin(engine, args.email, args.name)
    elif args.command == "seed-products":
        setup_db(engine)
        seed_products(engine)

    return 0


if __name__ == "__main__":
    sys.exit(main())
