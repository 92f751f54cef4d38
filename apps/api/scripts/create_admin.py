#!/usr/bin/env python3
"""
Barangay Bayabas Admin Account Setup Script

Creates an administrator for the document request dashboard.

Usage (interactive):
    python apps/api/scripts/create_admin.py

Usage (non-interactive):
    python apps/api/scripts/create_admin.py --email clerk@barangay.gov.ph --name "Ana Clerk" --password ClerkPass123
"""
import os
import sys
import getpass
import argparse

# Ensure project root is importable
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(project_root, '.env'))


def main():
    parser = argparse.ArgumentParser(description='Create a Barangay Bayabas admin account')
    parser.add_argument('--email', '-e', help='Admin email address')
    parser.add_argument('--name', '-n', help='Admin full name')
    parser.add_argument('--password', '-p', help='Admin password (min 8 chars)')
    args = parser.parse_args()

    email = args.email or input("Email: ").strip()
    full_name = args.name or input("Full name: ").strip()
    password = args.password or getpass.getpass("Password: ")

    if len(password or '') < 8:
        print("Error: Password must be at least 8 characters long")
        return 1

    from apps.api.app import create_app
    from apps.api import db
    from apps.api.utils.seed import create_admin
    from apps.api.utils.validators import ValidationError, validate_email

    app = create_app()
    with app.app_context():
        db.create_all()
        try:
            email = validate_email(email)
            admin = create_admin(email, password, full_name)
        except (ValidationError, ValueError) as e:
            print(f"Error: {e}")
            return 1
        print(f"Admin account created: {admin.email} (id {admin.id})")
    return 0


if __name__ == '__main__':
    sys.exit(main())
