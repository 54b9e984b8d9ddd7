from brain_db.config.settings import settings
