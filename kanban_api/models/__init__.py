from kanban_api.models.user import User
from kanban_api.models.board import Board, board_members
from kanban_api.models.list import TaskList
from kanban_api.models.task import Task, task_assignees
from kanban_api.models.activity import Activity, ActivityEntity, ActivityAction
