"""
Analytics events for admin actions, form submissions and screenshot analysis.

Events are JSON log records on the ``tracker.analytics`` logger, written to
their own dated ``analytics_*.log`` file so they can be shipped separately
from the application log.
"""

import json
from typing import Any, Dict, Optional

from tracker.utils.logger import setup_logger


class AnalyticsService:
    def __init__(self, logger_name: str = 'tracker.analytics'):
        self.logger = setup_logger(logger_name, log_file='analytics')

    def _emit(self, event: str, actor: Optional[str], properties: Dict[str, Any]):
        payload = {'event': event, 'actor': actor or 'anonymous', **properties}
        self.logger.info(json.dumps(payload, default=str, sort_keys=True))

    def log_admin_action(self, actor: Optional[str], action: str, **properties):
        self._emit('admin_action', actor, {'action': action, **properties})

    def log_form_success(self, actor: Optional[str], form: str, **properties):
        self._emit('form_success', actor, {'form': form, **properties})

    def log_form_error(self, actor: Optional[str], form: str, error: str, **properties):
        self._emit('form_error', actor, {'form': form, 'error': error, **properties})

    def log_vision_action(self, actor: Optional[str], game_id: int, req_check: bool, **properties):
        self._emit('vision_analysis', actor, {'game_id': game_id, 'req_check': req_check, **properties})

    def log_vision_error(self, actor: Optional[str], game_id: int, error: str):
        self._emit('vision_error', actor, {'game_id': game_id, 'error': error})
