"""Queue definitions for the Procrastinate task queue."""

QUEUE_USER_ACTIONS = "user_actions"  # User-initiated, expecting quick response
QUEUE_BACKGROUND = "background"  # Background processing, can wait

# All queues for worker startup
ALL_QUEUES = [QUEUE_USER_ACTIONS, QUEUE_BACKGROUND]
