import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock, patch
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.api.v1.lists import reorder_lists
from kanban_api.api.v1.tasks import move_task, update_task
from kanban_api.db.database import get_async_session
from kanban_api.main import app
from kanban_api.models.user import User
from kanban_api.schemas.list import ListOrderItem, ListReorder
from kanban_api.schemas.task import TaskMove, TaskUpdate
from kanban_api.services.security_service import SecurityService
from kanban_api.services.task_service import UNSET


class TestTaskEndpoints:
    """Тесты эндпоинтов задач с замоканными сервисами"""

    @pytest.fixture
    def mock_db(self):
        return AsyncMock(spec=AsyncSession)

    @pytest.fixture
    def current_user(self):
        user = MagicMock(spec=User)
        user.id = 1
        return user

    @pytest.mark.asyncio
    async def test_move_passes_destination_and_order(self, mock_db, current_user):
        task = MagicMock()
        with patch('kanban_api.api.v1.tasks.TaskService.move', return_value=task) as mock_move:
            result = await move_task(7, TaskMove(list_id=3, order=2), mock_db, current_user)

        assert result == {"success": True, "data": task}
        mock_move.assert_called_once_with(
            db=mock_db, task_id=7, user_id=1, destination_list_id=3, order=2
        )

    @pytest.mark.asyncio
    async def test_update_without_due_date_keeps_it(self, mock_db, current_user):
        with patch('kanban_api.api.v1.tasks.TaskService.update', return_value=MagicMock()) as mock_update:
            await update_task(7, TaskUpdate(title="New"), mock_db, current_user)

        assert mock_update.call_args.kwargs["due_date"] is UNSET
        assert mock_update.call_args.kwargs["labels"] is None

    @pytest.mark.asyncio
    async def test_update_with_null_due_date_clears_it(self, mock_db, current_user):
        with patch('kanban_api.api.v1.tasks.TaskService.update', return_value=MagicMock()) as mock_update:
            await update_task(
                7, TaskUpdate(due_date=None, labels=[{"color": "red", "text": "bug"}]), mock_db, current_user
            )

        assert mock_update.call_args.kwargs["due_date"] is None
        assert mock_update.call_args.kwargs["labels"] == [{"color": "red", "text": "bug"}]

    @pytest.mark.asyncio
    async def test_reorder_lists(self, mock_db, current_user):
        lists = [MagicMock(), MagicMock()]
        reorder = ListReorder(lists=[ListOrderItem(id=2, order=0), ListOrderItem(id=1, order=1)])
        with patch('kanban_api.api.v1.lists.ListService.reorder', return_value=lists) as mock_reorder:
            result = await reorder_lists(4, reorder, mock_db, current_user)

        assert result == {"success": True, "count": 2, "data": lists}
        mock_reorder.assert_called_once_with(
            db=mock_db, board_id=4, user_id=1,
            items=[{"id": 2, "order": 0}, {"id": 1, "order": 1}]
        )


class TestHttp:
    """Сквозные запросы через ASGI: конверт ответа и коды ошибок"""

    @pytest_asyncio.fixture
    async def client(self, session_factory):
        async def override_session():
            async with session_factory() as session:
                yield session

        app.dependency_overrides[get_async_session] = override_session
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
        app.dependency_overrides.clear()

    @staticmethod
    def _auth(user_id):
        return {"Authorization": f"Bearer {SecurityService.create_access_token(user_id)}"}

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/boards")

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_invalid_token(self, client, users):
        response = await client.get("/api/boards", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid authentication credentials"}

    @pytest.mark.asyncio
    async def test_board_lifecycle(self, client, users, owner_id):
        headers = self._auth(owner_id)

        created = await client.post("/api/boards", json={"title": "Web"}, headers=headers)
        assert created.status_code == 201
        board_id = created.json()["data"]["id"]

        listed = await client.get("/api/boards", headers=headers)
        assert listed.json()["count"] == 1

        todo = await client.post(f"/api/boards/{board_id}/lists", json={"title": "To Do"}, headers=headers)
        done = await client.post(f"/api/boards/{board_id}/lists", json={"title": "Done"}, headers=headers)
        assert [todo.json()["data"]["order"], done.json()["data"]["order"]] == [0, 1]

        card = await client.post(
            f"/api/lists/{todo.json()['data']['id']}/cards",
            json={"title": "Ship", "labels": [{"color": "green", "text": "v1"}]},
            headers=headers
        )
        assert card.status_code == 201
        card_id = card.json()["data"]["id"]

        moved = await client.put(
            f"/api/cards/{card_id}/move",
            json={"list_id": done.json()["data"]["id"], "order": 0},
            headers=headers
        )
        assert moved.status_code == 200
        assert moved.json()["data"]["list_id"] == done.json()["data"]["id"]

        feed = await client.get(f"/api/boards/{board_id}/activities", headers=headers)
        assert feed.json()["data"][0]["action_type"] == "move"

        deleted = await client.delete(f"/api/boards/{board_id}", headers=headers)
        assert deleted.json() == {"success": True, "data": {}}

        gone = await client.get(f"/api/boards/{board_id}", headers=headers)
        assert gone.status_code == 404
        assert gone.json() == {"success": False, "message": f"Board not found with id of {board_id}"}

    @pytest.mark.asyncio
    async def test_forbidden_for_outsider(self, client, board, outsider_id):
        response = await client.get(f"/api/boards/{board['board'].id}/lists", headers=self._auth(outsider_id))

        assert response.status_code == 403
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_validation_error_is_400(self, client, board, owner_id):
        response = await client.post(
            f"/api/boards/{board['board'].id}/lists", json={"title": "   "}, headers=self._auth(owner_id)
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "List title must not be empty"}

    @pytest.mark.asyncio
    async def test_malformed_body_is_400(self, client, board, owner_id):
        response = await client.put(
            "/api/cards/1/move", json={"list_id": "abc"}, headers=self._auth(owner_id)
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_cross_board_move_is_400(self, client, board, owner_id):
        headers = self._auth(owner_id)
        other = await client.post("/api/boards", json={"title": "Other"}, headers=headers)
        foreign = await client.post(
            f"/api/boards/{other.json()['data']['id']}/lists", json={"title": "Foreign"}, headers=headers
        )
        card = await client.post(f"/api/lists/{board['todo'].id}/cards", json={"title": "Stay"}, headers=headers)

        response = await client.put(
            f"/api/cards/{card.json()['data']['id']}/move",
            json={"list_id": foreign.json()["data"]["id"], "order": 0},
            headers=headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot move task to a list in a different board"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, client, users, owner_id):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as raw_client:
            with patch('kanban_api.api.v1.boards.BoardService.get_boards_by_user',
                       AsyncMock(side_effect=RuntimeError("db down"))):
                response = await raw_client.get("/api/boards", headers=self._auth(owner_id))

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Server error"}

    @pytest.mark.asyncio
    async def test_duplicate_row_is_400(self, client, board, owner_id):
        """Гонка двух приглашений упирается в первичный ключ board_members"""
        error = IntegrityError("INSERT INTO board_members", {}, Exception("duplicate key"))
        with patch('kanban_api.api.v1.boards.BoardService.add_member', AsyncMock(side_effect=error)):
            response = await client.put(
                f"/api/boards/{board['board'].id}/members",
                json={"email": "carol@example.com"},
                headers=self._auth(owner_id)
            )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Request conflicts with existing data"}

    @pytest.mark.asyncio
    async def test_value_rejected_by_database_is_400(self, client, board, owner_id):
        error = DataError("UPDATE tasks", {}, Exception("integer out of range"))
        with patch('kanban_api.api.v1.tasks.TaskService.move', AsyncMock(side_effect=error)):
            response = await client.put(
                "/api/cards/1/move", json={"list_id": board["done"].id, "order": 3}, headers=self._auth(owner_id)
            )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_order_out_of_range_is_400(self, client, board, owner_id):
        headers = self._auth(owner_id)
        card = await client.post(f"/api/lists/{board['todo'].id}/cards", json={"title": "Big"}, headers=headers)

        response = await client.put(
            f"/api/cards/{card.json()['data']['id']}/move",
            json={"list_id": board["done"].id, "order": 2 ** 40},
            headers=headers
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Order must be at most 2147483647"}

    @pytest.mark.asyncio
    async def test_count_only_on_collections(self, client, board, owner_id):
        headers = self._auth(owner_id)

        single = await client.get(f"/api/boards/{board['board'].id}", headers=headers)
        many = await client.get(f"/api/boards/{board['board'].id}/lists", headers=headers)

        assert set(single.json()) == {"success", "data"}
        assert many.json()["count"] == 2

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/")
        assert response.status_code == 200
