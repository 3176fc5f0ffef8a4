"""
python -m scripts.create_tenant "Acme Ltd" admin@acme.com "Jane Doe" --type corporate --jurisdiction UK

Registers a tenant and its admin user without going through the HTTP API.
The admin password is read from the ADMIN_PASSWORD environment variable or
prompted for.
"""

import argparse
import getpass
import os
import sys

sys.path.insert(0, ".")

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal
from app.core.exceptions import ConflictError
from app.schemas.auth import RegisterTenantRequest
from app.services.auth import auth_service


def create_tenant(args: argparse.Namespace) -> None:
    """Register the tenant and print the new ids."""
    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    data = RegisterTenantRequest(
        company_name=args.company_name,
        company_type=args.type,
        jurisdiction=args.jurisdiction,
        admin_name=args.admin_name,
        admin_email=args.admin_email,
        admin_password=password,
    )

    db = SessionLocal()

    try:
        result = auth_service.register_tenant(db, data)
        print(f"Created tenant {result.tenant_id} with admin user {result.user_id}")
    except ConflictError as e:
        print(f"Error: {e.message}")
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Register a tenant and its admin user")
    parser.add_argument("company_name")
    parser.add_argument("admin_email")
    parser.add_argument("admin_name")
    parser.add_argument("--type", default="corporate")
    parser.add_argument("--jurisdiction", default="N/A")
    create_tenant(parser.parse_args())
