import pytest
from sqlalchemy import func, select

from kanban_api.core.exceptions import ForbiddenError, InvalidOperationError, NotFoundError
from kanban_api.models import Activity, Task, TaskList
from kanban_api.services.board_service import BoardService
from kanban_api.services.membership_service import MembershipService
from kanban_api.services.task_service import TaskService


class TestBoardGuard:
    """Проверка доступа к доске, списку и задаче"""

    @pytest.mark.asyncio
    async def test_owner_and_member_pass(self, db, board, owner_id, member_id):
        board_id = board["board"].id
        assert (await MembershipService.ensure_board_access(db, board_id, owner_id)).id == board_id
        assert (await MembershipService.ensure_board_access(db, board_id, member_id)).id == board_id

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, db, board, outsider_id):
        with pytest.raises(ForbiddenError):
            await MembershipService.ensure_board_access(db, board["board"].id, outsider_id)

    @pytest.mark.asyncio
    async def test_missing_board(self, db, users, owner_id):
        with pytest.raises(NotFoundError) as exc_info:
            await MembershipService.ensure_board_access(db, 404, owner_id)
        assert exc_info.value.message == "Board not found with id of 404"

    @pytest.mark.asyncio
    async def test_missing_board_checked_before_membership(self, db, users, outsider_id):
        with pytest.raises(NotFoundError):
            await MembershipService.ensure_board_access(db, 404, outsider_id)

    @pytest.mark.asyncio
    async def test_list_and_task_resolve_board(self, db, board, member_id, outsider_id):
        task = await TaskService.create(db, board["todo"].id, member_id, "Shared")

        task_list, list_board = await MembershipService.ensure_list_access(db, board["todo"].id, member_id)
        found, task_board = await MembershipService.ensure_task_access(db, task.id, member_id)
        assert task_list.id == board["todo"].id
        assert found.id == task.id
        assert list_board.id == task_board.id == board["board"].id

        with pytest.raises(ForbiddenError):
            await MembershipService.ensure_task_access(db, task.id, outsider_id)
        with pytest.raises(NotFoundError):
            await MembershipService.ensure_list_access(db, 999, member_id)

    @pytest.mark.asyncio
    async def test_member_cannot_update_board(self, db, board, member_id):
        with pytest.raises(ForbiddenError):
            await BoardService.update(db, board["board"].id, member_id, title="Mine now")

    @pytest.mark.asyncio
    async def test_member_cannot_delete_board(self, db, board, member_id):
        with pytest.raises(ForbiddenError):
            await BoardService.delete(db, board["board"].id, member_id)


class TestBoards:

    @pytest.mark.asyncio
    async def test_create_board_records_activity(self, db, users, owner_id):
        created = await BoardService.create(db, "  Sprint  ", owner_id, description="Q4")

        assert created.title == "Sprint"
        assert created.owner_id == owner_id
        assert created.member_ids == []
        result = await db.execute(select(Activity).where(Activity.board_id == created.id))
        assert [activity.text for activity in result.scalars().all()] == ["created this board"]

    @pytest.mark.asyncio
    async def test_boards_by_user(self, db, board, owner_id, member_id, outsider_id):
        assert [b.id for b in await BoardService.get_boards_by_user(db, owner_id)] == [board["board"].id]
        assert [b.id for b in await BoardService.get_boards_by_user(db, member_id)] == [board["board"].id]
        assert await BoardService.get_boards_by_user(db, outsider_id) == []

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db, board, owner_id):
        board_id, todo_id = board["board"].id, board["todo"].id
        task = await TaskService.create(db, todo_id, owner_id, "Doomed")

        await BoardService.delete(db, board_id, owner_id)

        with pytest.raises(NotFoundError):
            await BoardService.get(db, board_id, owner_id)
        with pytest.raises(NotFoundError):
            await TaskService.get(db, task.id, owner_id)
        for model in (Task, TaskList, Activity):
            count = await db.scalar(select(func.count()).select_from(model).where(model.board_id == board_id))
            assert count == 0


class TestMembers:
    """Добавление и удаление участников доски"""

    @pytest.mark.asyncio
    async def test_add_member_by_email(self, db, board, users, owner_id, outsider_id):
        updated = await BoardService.add_member(db, board["board"].id, owner_id, "carol@example.com")

        assert outsider_id in updated.member_ids
        assert (await MembershipService.ensure_board_access(db, board["board"].id, outsider_id)).id

    @pytest.mark.asyncio
    async def test_add_member_email_is_case_insensitive(self, db, board, users, owner_id):
        updated = await BoardService.add_member(db, board["board"].id, owner_id, "dave@example.com")
        assert users["guest"].id in updated.member_ids

    @pytest.mark.asyncio
    async def test_add_unknown_email(self, db, board, owner_id):
        with pytest.raises(NotFoundError):
            await BoardService.add_member(db, board["board"].id, owner_id, "nobody@example.com")

    @pytest.mark.asyncio
    async def test_add_existing_member(self, db, board, owner_id):
        with pytest.raises(InvalidOperationError):
            await BoardService.add_member(db, board["board"].id, owner_id, "bob@example.com")

    @pytest.mark.asyncio
    async def test_only_owner_adds_members(self, db, board, member_id):
        with pytest.raises(ForbiddenError):
            await BoardService.add_member(db, board["board"].id, member_id, "carol@example.com")

    @pytest.mark.asyncio
    async def test_remove_member_revokes_access_and_assignments(self, db, board, owner_id, member_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Pair")
        await TaskService.assign_user(db, task.id, owner_id, member_id)

        updated = await BoardService.remove_member(db, board["board"].id, owner_id, member_id)

        assert member_id not in updated.member_ids
        with pytest.raises(ForbiddenError):
            await MembershipService.ensure_board_access(db, board["board"].id, member_id)
        assert (await TaskService.get_by_id(db, task.id)).assigned_to == []

    @pytest.mark.asyncio
    async def test_remove_non_member_is_noop(self, db, board, owner_id, member_id, outsider_id):
        updated = await BoardService.remove_member(db, board["board"].id, owner_id, outsider_id)

        assert updated.member_ids == [member_id]
        count = await db.scalar(select(func.count()).select_from(Activity))
        assert count == 0

    @pytest.mark.asyncio
    async def test_remove_unknown_user(self, db, board, owner_id):
        with pytest.raises(NotFoundError):
            await BoardService.remove_member(db, board["board"].id, owner_id, 999)


class TestAssignment:
    """Назначение участников на задачи"""

    @pytest.mark.asyncio
    async def test_assign_member(self, db, board, owner_id, member_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Assign me")

        updated = await TaskService.assign_user(db, task.id, owner_id, member_id)

        assert updated.assigned_to == [member_id]
        result = await db.execute(select(Activity).where(Activity.task_id == task.id))
        assert 'assigned bob to task "Assign me"' in [a.text for a in result.scalars().all()]

    @pytest.mark.asyncio
    async def test_assign_owner(self, db, board, owner_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Mine")

        updated = await TaskService.assign_user(db, task.id, owner_id, owner_id)
        assert updated.assigned_to == [owner_id]

    @pytest.mark.asyncio
    async def test_assign_twice(self, db, board, owner_id, member_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Once")
        await TaskService.assign_user(db, task.id, owner_id, member_id)

        with pytest.raises(InvalidOperationError):
            await TaskService.assign_user(db, task.id, owner_id, member_id)
        assert (await TaskService.get_by_id(db, task.id)).assigned_to == [member_id]

    @pytest.mark.asyncio
    async def test_assign_non_member(self, db, board, owner_id, outsider_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Closed")

        with pytest.raises(InvalidOperationError):
            await TaskService.assign_user(db, task.id, owner_id, outsider_id)

    @pytest.mark.asyncio
    async def test_assign_unknown_user(self, db, board, owner_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Ghost")

        with pytest.raises(NotFoundError):
            await TaskService.assign_user(db, task.id, owner_id, 999)

    @pytest.mark.asyncio
    async def test_unassign(self, db, board, owner_id, member_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Drop")
        await TaskService.assign_user(db, task.id, owner_id, member_id)

        updated = await TaskService.unassign_user(db, task.id, owner_id, member_id)
        assert updated.assigned_to == []

    @pytest.mark.asyncio
    async def test_unassign_absent_user(self, db, board, owner_id, member_id):
        task = await TaskService.create(db, board["todo"].id, owner_id, "Nobody")
        before = await db.scalar(select(func.count()).select_from(Activity))

        updated = await TaskService.unassign_user(db, task.id, owner_id, member_id)

        assert updated.assigned_to == []
        assert await db.scalar(select(func.count()).select_from(Activity)) == before
