from __future__ import annotations

from datetime import timedelta

import click
from flask import current_app

from .extensions import db
from .families import membership

from .models.user import User
from .models.family import Family, FamilyMember
from .models.pet import Pet
from .models.note import Note
from .models.pet_file import PetFile
from .models.vaccination import Vaccination
from .utils import utcnow


def _db_uri() -> str:
    return current_app.config.get("SQLALCHEMY_DATABASE_URI", "")

@click.command("init-db")
def init_db_cmd():
    uri = _db_uri()
    click.echo(f"Creating tables on DB: {uri}")
    db.create_all()
    click.echo("✔ Tables created.")

@click.command("reset-db")
@click.option("--force", is_flag=True, help="Drop + create (irreversible).")
def reset_db_cmd(force: bool):
    uri = _db_uri()
    if not force:
        click.echo("Add --force to confirm dropping all tables.")
        return
    click.echo(f"Dropping & creating tables on DB: {uri}")
    db.drop_all()
    db.create_all()
    click.echo("✔ Database reset.")

@click.command("purge-data")
def purge_data_cmd():
    db.session.query(Vaccination).delete()
    db.session.query(PetFile).delete()
    db.session.query(Note).delete()
    db.session.query(Pet).delete()
    db.session.query(FamilyMember).delete()
    db.session.query(Family).delete()
    db.session.query(User).delete()
    db.session.commit()
    click.echo("✔ All data removed (schema kept).")

@click.command("seed-demo")
@click.option("--password", default="demo-pass", show_default=True, help="Password for demo users.")
def seed_demo_cmd(password: str):
    if User.query.filter_by(email="maria@petfamily.app").first():
        click.echo("Demo data already present.")
        return

    maria = User(email="maria@petfamily.app", first_name="Maria", last_name="Rodriguez")
    maria.set_password(password)
    carlos = User(email="carlos@petfamily.app", first_name="Carlos", last_name="Martinez")
    carlos.set_password(password)
    db.session.add_all([maria, carlos])
    db.session.commit()

    family = membership.create_family(
        "Rodriguez-Martinez", "A family that loves its pets", maria
    )
    membership.add_member(family.id, carlos)

    now = utcnow()
    luna = Pet(family_id=family.id, name="Luna", species="dog", breed="Golden Retriever",
               gender="female", color="Golden", weight="28 kg",
               vet_name="Dr. Lopez", vet_clinic="Central Vet")
    misu = Pet(family_id=family.id, name="Misu", species="cat", breed="Siamese",
               gender="male", allergies="Chicken")
    db.session.add_all([luna, misu])
    db.session.flush()

    db.session.add_all([
        Note(pet_id=luna.id, author_id=maria.id, type="daily", title="Park walk",
             content="Long walk, lots of energy.", date=now - timedelta(days=1), mood="very_happy"),
        Note(pet_id=luna.id, author_id=carlos.id, type="veterinary", title="Annual checkup",
             content="All good.", date=now - timedelta(days=10),
             vet_name="Dr. Lopez", vet_clinic="Central Vet"),
        Note(pet_id=misu.id, author_id=maria.id, type="task", title="Deworming",
             content="Give tablet with food.", date=now, due_date=now + timedelta(days=7),
             frequency="monthly", completed=False),
        Vaccination(pet_id=luna.id, vaccine_name="Rabies", date_administered=now - timedelta(days=300),
                    next_due_date=now + timedelta(days=65), vet_name="Dr. Lopez"),
        Vaccination(pet_id=misu.id, vaccine_name="FVRCP", date_administered=now - timedelta(days=30)),
    ])
    db.session.commit()

    click.echo(
        "✔ Seed done. Users: maria@petfamily.app / carlos@petfamily.app "
        f"(password: {password})"
    )
