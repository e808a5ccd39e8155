"""
The service's notion of "today".

Card expiry is a calendar-date rule, evaluated in UTC. Everything that
compares against an expiry date calls clock.today() through the module
(not a copied reference), so tests can move time with
unittest.mock.patch("bankcards.clock.today").
"""

from datetime import date, datetime, timezone


def today() -> date:
    return datetime.now(timezone.utc).date()
