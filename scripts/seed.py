"""Load the reference service catalog into the store."""
import argparse
import asyncio
import time

from virtyum.database import Base, async_session, engine
from virtyum.schemas import ServiceDocument
from virtyum.models import Service, Task

CATALOG = [
    ("SEO & Posicionamiento Web", "Digital", 899, "3-6 meses", "Activo",
     "Optimización completa para motores de búsqueda", 45),
    ("Social Media Marketing", "Social", 599, "Mensual", "Activo",
     "Gestión completa de redes sociales", 78),
    ("Google Ads & PPC", "Digital", 1299, "Mensual", "Activo",
     "Campañas publicitarias en Google y redes", 34),
    ("Content Marketing", "Contenido", 799, "Mensual", "Activo",
     "Creación de contenido estratégico", 56),
    ("Email Marketing", "Digital", 399, "Mensual", "Activo",
     "Campañas automatizadas de email", 89),
    ("Diseño Gráfico & Branding", "Diseño", 1199, "2-4 semanas", "Activo",
     "Identidad visual y materiales gráficos", 67),
    ("Desarrollo Web", "Desarrollo", 2499, "4-8 semanas", "Activo",
     "Sitios web profesionales y e-commerce", 23),
    ("Marketing Analytics", "Análisis", 699, "Mensual", "Activo",
     "Análisis y reportes de rendimiento", 41),
    ("Influencer Marketing", "Social", 1599, "Por campaña", "Nuevo",
     "Colaboraciones con influencers", 12),
    ("Video Marketing", "Contenido", 1899, "2-3 semanas", "Activo",
     "Producción de videos publicitarios", 28),
]

async def seed(reset: bool = False):
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        for name, category, price, duration, status, description, clients in CATALOG:
            document = ServiceDocument(
                name=name,
                category=category,
                price=price,
                duration=duration,
                status=status,
                description=description,
                clients=clients,
            )
            session.add(Service(**document.model_dump()))
        session.add(Task(title="Review Q4 pricing", description="Compare catalog prices with competitors"))
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"Seeded {len(CATALOG)} services in {elapsed:.2f}s")
    await engine.dispose()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Virtyum catalog")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables first")
    args = parser.parse_args()
    asyncio.run(seed(reset=args.reset))
