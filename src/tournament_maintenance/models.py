from tournament_maintenance.errors import TaskDefinitionError

# Actions
DELETE_MATCHING = 'delete_matching'
DROP_NAMED_INDEX = 'drop_named_index'
ACTIONS = (DELETE_MATCHING, DROP_NAMED_INDEX)

# Run states, in the order a successful run passes through them
INIT = 'INIT'
CONNECTED = 'CONNECTED'
AUDITED = 'AUDITED'
MUTATED = 'MUTATED'
DISCONNECTED = 'DISCONNECTED'
TERMINATED = 'TERMINATED'


class MaintenanceTask:
    def __init__(self, name, target_collection, action, selector=None, index_name=None, description=''):
        self.name = name
        self.target_collection = target_collection
        self.action = action
        self.selector = selector if selector is not None else {}
        self.index_name = index_name
        self.description = description
        self.validate()

    def validate(self):
        """Raise TaskDefinitionError if the task cannot be run."""
        if not self.name:
            raise TaskDefinitionError("Task has no name")
        if self.action not in ACTIONS:
            raise TaskDefinitionError(
                f"Task '{self.name}': unknown action '{self.action}' (expected one of {', '.join(ACTIONS)})"
            )
        if not isinstance(self.target_collection, str) or not self.target_collection.strip():
            raise TaskDefinitionError(f"Task '{self.name}': target collection is required")
        if not isinstance(self.selector, dict):
            raise TaskDefinitionError(f"Task '{self.name}': selector must be a mapping, got {type(self.selector).__name__}")
        if self.action == DROP_NAMED_INDEX and not self.index_name:
            raise TaskDefinitionError(f"Task '{self.name}': {DROP_NAMED_INDEX} needs an index name")

    def __repr__(self):
        target = self.index_name if self.action == DROP_NAMED_INDEX else self.selector
        return f"MaintenanceTask(name={self.name}, collection={self.target_collection}, action={self.action}, target={target})"


class TaskResult:
    def __init__(self, task, matched=None, affected_count=0, succeeded=False, message='',
                 state=INIT, error_kind=None, dry_run=False):
        self.task = task
        self.matched = matched if matched is not None else []
        self.affected_count = affected_count
        self.succeeded = succeeded
        self.message = message
        self.state = state
        self.error_kind = error_kind
        self.dry_run = dry_run

    @property
    def matched_count(self):
        return len(self.matched)

    def __repr__(self):
        return (f"TaskResult(task={self.task.name}, matched={self.matched_count}, affected={self.affected_count}, "
                f"succeeded={self.succeeded}, state={self.state})")
