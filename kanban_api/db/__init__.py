from kanban_api.db.database import get_async_session, init_db
