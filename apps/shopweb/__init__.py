# -*- coding: utf-8 -*-
"""HTTP read API over the shop location index."""
