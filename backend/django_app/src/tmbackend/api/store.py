"""User-scoped access to the tasks table.

Every lookup is filtered by the owning user, so a task that belongs to
somebody else is indistinguishable from one that does not exist: both raise
``Task.DoesNotExist``.
"""

import logging

from django.db.models import Q

from tmbackend.api.models import Task

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('title', 'description', 'effort_days', 'due_date', 'status')


class TaskStore:
    """CRUD over one user's tasks.

    Construct one per authenticated request and hand it to whatever needs to
    read or write tasks on that user's behalf (views, the bulk importer).
    """

    def __init__(self, user):
        self.user = user

    def _queryset(self):
        return Task.objects.filter(user=self.user)

    def list(self, status=None, search=None):
        qs = self._queryset()
        if status:
            qs = qs.filter(status=status)
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
        return list(qs.order_by('-created_at', '-id'))

    def get(self, task_id):
        return self._queryset().get(pk=task_id)

    def create(self, *, title, due_date, description='', effort_days=1, status=Task.Status.PENDING):
        task = Task(
            user=self.user,
            title=title,
            description=description or '',
            effort_days=effort_days,
            due_date=due_date,
            status=status,
        )
        task.full_clean()
        task.save()
        logger.debug("Created task id=%s user=%s", task.id, self.user.id)
        return task

    def update(self, task_id, **fields):
        task = self.get(task_id)
        for name in EDITABLE_FIELDS:
            if name in fields:
                setattr(task, name, fields[name])
        task.description = task.description or ''
        task.full_clean()
        task.save()
        return task

    def delete(self, task_id):
        deleted, _ = self._queryset().filter(pk=task_id).delete()
        if not deleted:
            raise Task.DoesNotExist(f"Task {task_id} not found")
