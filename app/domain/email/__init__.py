"""Email domain - Queue-backed email dispatch

- types.py: templates, priorities and the job payload
- queue.py: arq producer (enqueue, pause/resume, clean, retry, remove, metrics)
- service.py: validating façade used by routes and other domains
- health.py: Redis / transport / backlog checks
- router.py: /email endpoints

Rendering and delivery run in the worker (app/worker.py) using
app/email_templates.py and app/email_service.py.
"""

from .queue import EmailQueue
from .router import router
from .service import EmailService

__all__ = ["EmailQueue", "EmailService", "router"]
