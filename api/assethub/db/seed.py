"""Database seeding script."""

import json

from assethub.database import SessionLocal
from assethub.models.service_config import ServiceConfig
from assethub.models.tenant import Tenant
from assethub.models.user import User
from assethub.permissions import Role
from assethub.schemas.service_config import ConfigKind

DEMO_USERS = [
    ("admin@demo.local", "Demo Admin", Role.ADMIN),
    ("manager@demo.local", "Content Manager", Role.CONTENT_MANAGER),
    ("reviewer@demo.local", "Demo Reviewer", Role.REVIEWER),
    ("creative@demo.local", "Demo Creative", Role.CREATIVE),
    ("viewer@demo.local", "Demo Viewer", Role.USER),
]


def seed_database(local_path: str = "/tmp/assethub/tenant-1"):
    """Seed a demo tenant with one user per role and local storage."""
    db = SessionLocal()

    try:
        existing_tenant = db.query(Tenant).filter_by(name="Demo Tenant").first()
        if existing_tenant:
            print("Database already seeded. Skipping.")
            return

        tenant = Tenant(name="Demo Tenant", is_active=True)
        db.add(tenant)
        db.flush()
        print(f"Created tenant: {tenant.name} (ID: {tenant.id})")

        for email, name, role in DEMO_USERS:
            db.add(User(tenant_id=tenant.id, email=email, name=name, role=role))
            print(f"Created user: {email} ({role})")

        db.add(
            ServiceConfig(
                tenant_id=tenant.id,
                kind=ConfigKind.STORAGE,
                provider="local",
                base_path=local_path,
                options_json=json.dumps({}),
            )
        )
        print(f"Created storage config: local at {local_path}")

        db.commit()
        print("\nDatabase seeded successfully!")

    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    print("Starting database seeding...")
    seed_database()
