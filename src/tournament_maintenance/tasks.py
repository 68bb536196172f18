"""
Built-in maintenance tasks and loading of extra tasks from YAML.
"""
import os
import yaml

from tournament_maintenance.errors import TaskDefinitionError
from tournament_maintenance.models import MaintenanceTask, DELETE_MATCHING, DROP_NAMED_INDEX

TEAMS_COLLECTION = 'teams'
STALE_TEAM_INDEX = 'tournament_1_teamName_1'

BUILTIN_TASKS = {
    'cleanup-null-team-names': MaintenanceTask(
        name='cleanup-null-team-names',
        target_collection=TEAMS_COLLECTION,
        action=DELETE_MATCHING,
        # Matches both a null name and a missing name field
        selector={'name': None},
        description='Delete team records whose name is null or missing',
    ),
    'drop-stale-team-index': MaintenanceTask(
        name='drop-stale-team-index',
        target_collection=TEAMS_COLLECTION,
        action=DROP_NAMED_INDEX,
        index_name=STALE_TEAM_INDEX,
        description=f'Drop the obsolete unique index {STALE_TEAM_INDEX} from teams',
    ),
}

# Accepted keys in a task file entry, mapped to MaintenanceTask arguments
_FIELD_NAMES = {
    'name': 'name',
    'collection': 'target_collection',
    'action': 'action',
    'selector': 'selector',
    'index': 'index_name',
    'description': 'description',
}


def task_from_dict(data):
    if not isinstance(data, dict):
        raise TaskDefinitionError(f"Task entry must be a mapping, got {type(data).__name__}")
    unknown = set(data) - set(_FIELD_NAMES)
    if unknown:
        raise TaskDefinitionError(
            f"Task '{data.get('name', '?')}': unknown field(s) {', '.join(sorted(unknown))}"
        )
    kwargs = {_FIELD_NAMES[key]: value for key, value in data.items()}
    kwargs.setdefault('name', None)
    kwargs.setdefault('target_collection', None)
    kwargs.setdefault('action', None)
    return MaintenanceTask(**kwargs)


def load_task_file(file_path):
    """
    Read task definitions from a YAML file.

    Expected layout::

        tasks:
          - name: purge-withdrawn
            collection: teams
            action: delete_matching
            selector: {status: withdrawn}
    """
    if not os.path.exists(file_path):
        raise TaskDefinitionError(f"Task file not found: {file_path}")
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise TaskDefinitionError(f"Cannot parse task file {file_path}: {e}") from e

    if not data:
        return {}
    if not isinstance(data, dict) or not isinstance(data.get('tasks'), list):
        raise TaskDefinitionError(f"Task file {file_path} must contain a 'tasks' list")

    tasks = {}
    for entry in data['tasks']:
        task = task_from_dict(entry)
        if task.name in tasks:
            raise TaskDefinitionError(f"Task '{task.name}' is defined twice in {file_path}")
        tasks[task.name] = task
    return tasks


def available_tasks(task_file=None):
    """Built-in tasks, overridden and extended by those in ``task_file``."""
    tasks = dict(BUILTIN_TASKS)
    if task_file:
        tasks.update(load_task_file(task_file))
    return tasks


def get_task(name, task_file=None):
    tasks = available_tasks(task_file)
    if name not in tasks:
        raise TaskDefinitionError(f"Unknown task '{name}'. Available: {', '.join(sorted(tasks))}")
    return tasks[name]
