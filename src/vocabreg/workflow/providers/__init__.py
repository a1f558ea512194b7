"""Built-in workflow providers.

Importing this package declares every built-in provider with the
default registry, one module per provider kind.
"""

from vocabreg.workflow.providers import backup, harvest, importer, publish, transform
from vocabreg.workflow.providers.base import WorkflowProvider

__all__ = ["WorkflowProvider", "backup", "harvest", "importer", "publish", "transform"]
