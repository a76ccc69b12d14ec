import hashlib
import logging
from .database import engine, SessionLocal, Base
from .models import *

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@serverpool.local"
DEMO_PASSWORD = "demo"

def initialize_db():
    """
    DB와 테이블을 생성하고, 로컬 개발용 기본 데이터를 삽입합니다.
    SQLAlchemy 모델을 사용하여 모든 작업을 수행합니다.
    """
    logger.info("Initializing database...")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.query(User).first():
            logger.info("Seed data already present, skipping.")
            return

        password_hash = hashlib.sha256(DEMO_PASSWORD.encode('utf-8')).hexdigest()
        demo_user = User(email=DEMO_EMAIL, password_hash=password_hash)
        db.add(demo_user)
        # 커밋하여 id를 할당받습니다.
        db.commit()

        db.add(Profile(user_id=demo_user.id, display_name="Demo"))
        db.add(Pool(
            owner_id=demo_user.id,
            name="Demo Pool",
            description="Local development pool",
            invite_code="DEMO0001",
            is_public=False,
            total_cpu_cores=0,
            total_ram_gb=0,
            total_storage_gb=0,
        ))
        db.add(Server(
            owner_id=demo_user.id,
            name="Demo Survival",
            game_type="minecraft:paper:1.21.4",
            status="offline",
            max_players=10,
            current_players=0,
            port=25565,
        ))
        db.commit()
        logger.info("Seed data inserted (user %s).", DEMO_EMAIL)

    except Exception:
        logger.exception("Failed to seed database")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    initialize_db()
