"""
Script para crear las tablas y cargar los datos iniciales
"""
from app.config.database import engine, SessionLocal
from app.shared.database.models import Base
from app.shared.database.seed import seed_catalogos, seed_demo_users, DEMO_USERS


def seed_database():
    """Crear tablas, catálogos y usuarios de demostración"""

    print("🗄️  Creando tablas...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        nuevos = seed_catalogos(db)
        print(f"✅ Catálogos cargados ({nuevos} filas nuevas)")

        creados = seed_demo_users(db)
        if creados:
            print(f"✅ Usuarios creados: {', '.join(creados)}")
            print("\n📋 Credenciales de prueba:")
            for user in DEMO_USERS:
                if user["login"] in creados:
                    print(f"   {user['login']} / {user['password']}")
        else:
            print("✅ Los usuarios de demostración ya existían")
    except Exception as e:
        db.rollback()
        print(f"❌ Error cargando datos iniciales: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
