"""Seed database with one account per role, a workshop, a supplier with parts and funded wallets."""

import asyncio
from decimal import Decimal

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from garagehub.auth.passwords import hash_password
from garagehub.config import settings
from garagehub.marketplace.codes import next_garagehub_code
from garagehub.models import Base, Part, Supplier, User, Wallet, Workshop, WorkshopStaff

SEED_PASSWORD = "GarageHub#2024"

# Kuala Lumpur area coordinates so dispatch and geofencing work out of the box
USERS = [
    {"email": "admin@garagehub.my", "first_name": "Admin", "role": "admin"},
    {"email": "customer@garagehub.my", "first_name": "Aisyah", "last_name": "Rahman", "role": "customer",
     "latitude": "3.1390000", "longitude": "101.6869000"},
    {"email": "workshop@garagehub.my", "first_name": "Kumar", "last_name": "Selvam", "role": "workshop",
     "latitude": "3.1073000", "longitude": "101.6067000"},
    {"email": "supplier@garagehub.my", "first_name": "Wei", "last_name": "Lim", "role": "supplier",
     "latitude": "3.0738000", "longitude": "101.5183000"},
    {"email": "runner@garagehub.my", "first_name": "Hafiz", "last_name": "Ismail", "role": "runner",
     "latitude": "3.0850000", "longitude": "101.5500000"},
    {"email": "towing@garagehub.my", "first_name": "Ravi", "last_name": "Nair", "role": "towing"},
    {"email": "staff@garagehub.my", "first_name": "Daniel", "last_name": "Tan", "role": "staff"},
]

WALLET_BALANCES = {
    "workshop": Decimal("5000.00"),
    "customer": Decimal("500.00"),
}

PARTS = [
    {"sku": "TOY-BP-001", "name": "Front Brake Pad Set", "category": "Brakes", "part_category": "brakes",
     "vehicle_make": "Toyota", "vehicle_model": "Vios", "vehicle_year_from": 2013, "vehicle_year_to": 2022,
     "price": "120.00", "stock_quantity": 40},
    {"sku": "PER-OF-002", "name": "Oil Filter", "category": "Engine", "part_category": "engine",
     "vehicle_make": "Perodua", "vehicle_model": "Myvi", "vehicle_year_from": 2011, "vehicle_year_to": 2023,
     "price": "18.50", "stock_quantity": 200},
    {"sku": "HON-SA-003", "name": "Rear Shock Absorber", "category": "Suspension", "part_category": "suspension",
     "vehicle_make": "Honda", "vehicle_model": "City", "vehicle_year_from": 2014, "vehicle_year_to": 2020,
     "price": "245.00", "stock_quantity": 12},
    {"sku": "PRO-BT-004", "name": "NS60 Battery", "category": "Electrical", "part_category": "electrical",
     "vehicle_make": "Proton", "vehicle_model": "Saga", "vehicle_year_from": 2016, "vehicle_year_to": 2024,
     "price": "210.00", "stock_quantity": 25},
]


async def seed():
    """Seed the database with demo accounts."""
    engine = create_async_engine(settings.database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        users = {}
        for user_data in USERS:
            data = dict(user_data)
            for field in ("latitude", "longitude"):
                if field in data:
                    data[field] = Decimal(data[field])
            user = User(
                **data,
                password_hash=hash_password(SEED_PASSWORD),
                phone="+60123456789",
                state="Selangor",
                city="Petaling Jaya",
                is_active=True,
                is_approved=True,
            )
            session.add(user)
            await session.flush()
            users[user.role] = user
            session.add(Wallet(user_id=user.id, balance=WALLET_BALANCES.get(user.role, Decimal("0.00"))))
            print(f"  + User: {user.email} ({user.role})")

        workshop_user = users["workshop"]
        workshop = Workshop(
            user_id=workshop_user.id,
            name="Kumar Auto Service",
            description="General servicing, brakes and suspension",
            address="12 Jalan SS2/24, Petaling Jaya",
            phone=workshop_user.phone,
            state="Selangor",
            city="Petaling Jaya",
            latitude=workshop_user.latitude,
            longitude=workshop_user.longitude,
            is_verified=True,
        )
        session.add(workshop)
        await session.flush()
        print(f"  + Workshop: {workshop.name}")

        session.add(
            WorkshopStaff(
                workshop_id=workshop.id,
                user_id=users["staff"].id,
                name=users["staff"].full_name,
                role="mechanic",
                phone=users["staff"].phone,
                email=users["staff"].email,
                basic_salary=Decimal("2200.00"),
                commission_rate=Decimal("5"),
                is_active=True,
            )
        )
        print(f"  + Staff: {users['staff'].full_name}")

        supplier_user = users["supplier"]
        supplier = Supplier(
            user_id=supplier_user.id,
            name="Lim Auto Parts",
            description="OEM parts for local and Japanese makes",
            address="8 Jalan Kenari 5, Puchong",
            phone=supplier_user.phone,
            state="Selangor",
            city="Puchong",
            latitude=supplier_user.latitude,
            longitude=supplier_user.longitude,
            supplier_type="OEM",
            delivery_method="both",
            is_verified=True,
        )
        session.add(supplier)
        await session.flush()
        print(f"  + Supplier: {supplier.name}")

        for part_data in PARTS:
            part = Part(
                **{**part_data, "price": Decimal(part_data["price"])},
                supplier_id=supplier.id,
                supplier_type=supplier.supplier_type,
                garagehub_code=await next_garagehub_code(session, supplier.id),
            )
            session.add(part)
            print(f"  + Part: {part.garagehub_code} {part.name}")

        await session.commit()

    await engine.dispose()
    print(f"\nSeed completed! All accounts use password {SEED_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed())
