# -*- coding: utf-8 -*-
"""Diet planner backend: user metrics and the auth boundary."""
