"""Kanban Board API: boards, lists, cards, ordering and activity feed"""
