"""
Seed Catalog

Creates a sample program with its certificate types and requirements so the
admissions workflow can be exercised locally. Safe to run repeatedly.

Usage:
    cd apps/api
    python scripts/seed_catalog.py [--program-admin-id <uuid>]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from uuid import UUID

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select

from admissions.core.database import async_session_maker, engine
from admissions.modules.applications import models as _application_models  # noqa: F401
from admissions.modules.catalog.models import (
    CertificateType,
    Program,
    ProgramCertificateRequirement,
)

PROGRAM = {"code": "BSC", "name": "Bachelor of Science"}

# (name, description, allowed extensions, max size MB, required, special instructions)
CERTIFICATES = [
    ("10th Marksheet", "Secondary school marksheet", [], None, True, None),
    ("12th Marksheet", "Higher secondary marksheet", [], None, True, None),
    ("Transfer Certificate", "Issued by the last institution attended", ["pdf"], None, True, None),
    (
        "Income Certificate",
        "Family income certificate issued this financial year",
        [],
        None,
        True,
        "Must be issued by the Tahsildar or an equivalent authority.",
    ),
    ("Caste Certificate", "Only for reserved category applicants", [], None, False, None),
    ("Passport Photo", "Recent colour photograph", ["jpg", "jpeg", "png"], 1, True, None),
]


async def seed_catalog(program_admin_id: UUID | None) -> None:
    """Create the sample program, certificate types and requirements if missing."""

    async with async_session_maker() as db:
        result = await db.execute(select(Program).where(Program.code == PROGRAM["code"]))
        program = result.scalar_one_or_none()

        if program is None:
            program = Program(
                code=PROGRAM["code"],
                name=PROGRAM["name"],
                program_admin_id=program_admin_id,
                is_active=True,
            )
            db.add(program)
            await db.flush()
            print(f"Created program {program.code}: {program.id}")
        else:
            print(f"Program already exists: {program.code} ({program.id})")

        for order, (name, description, extensions, max_mb, required, instructions) in enumerate(
            CERTIFICATES, start=1
        ):
            result = await db.execute(select(CertificateType).where(CertificateType.name == name))
            cert_type = result.scalar_one_or_none()
            if cert_type is None:
                cert_type = CertificateType(
                    name=name,
                    description=description,
                    allowed_extensions=extensions,
                    max_file_size_mb=max_mb,
                    display_order=order,
                    is_active=True,
                )
                db.add(cert_type)
                await db.flush()
                print(f"  Created certificate type: {name}")

            result = await db.execute(
                select(ProgramCertificateRequirement).where(
                    ProgramCertificateRequirement.program_id == program.id,
                    ProgramCertificateRequirement.certificate_type_id == cert_type.id,
                )
            )
            if result.unique().scalar_one_or_none() is None:
                db.add(
                    ProgramCertificateRequirement(
                        program_id=program.id,
                        certificate_type_id=cert_type.id,
                        is_required=required,
                        display_order=order,
                        special_instructions=instructions,
                    )
                )
                print(f"  Linked {name} ({'required' if required else 'optional'})")

        await db.commit()

    await engine.dispose()
    print("Catalog seeded successfully!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the admissions catalog")
    parser.add_argument("--program-admin-id", type=UUID, default=None)
    args = parser.parse_args()
    asyncio.run(seed_catalog(args.program_admin_id))
