#!/usr/bin/env python3
"""
Script para crear (o resetear) un usuario administrador.

Ejecutar:
    python tools/create_admin.py admin1@escalando.org "Admin Uno" <contraseña>

Si el email ya existe, se actualiza la contraseña y se fuerza el rol ADMIN.
"""

import argparse
import sys
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from escalando_core.db import helpers
from escalando_core.db.database import get_db_session, init_db


def create_admin(email: str, full_name: str, password: str):
    """Crea el admin o actualiza su contraseña si ya existe."""
    init_db()
    with get_db_session() as session:
        existing_user = helpers.get_user_by_email(session, email)

        if existing_user:
            print(f"⚠️  Usuario {email} ya existe (ID: {existing_user.id}).")
            helpers.set_user_password(session, existing_user.id, password)
            helpers.update_user(session, existing_user.id, {"role": "ADMIN"})
            print(f"✅ Contraseña y rol actualizados: {email}")
            return

        user = helpers.create_user(
            session,
            email=email,
            password=password,
            full_name=full_name,
            role="ADMIN",
        )
        print(f"✅ Usuario creado: {user.email}")
        print(f"   ID: {user.id}")


def main():
    parser = argparse.ArgumentParser(description="Crear usuario ADMIN")
    parser.add_argument("email")
    parser.add_argument("full_name")
    parser.add_argument("password")
    args = parser.parse_args()

    if len(args.password) < 6:
        print("❌ La contraseña debe tener al menos 6 caracteres.")
        sys.exit(1)

    create_admin(args.email, args.full_name, args.password)


if __name__ == "__main__":
    main()
