"""Academic Service.

Schools, classes and role-bearing profiles, with every mutation gated by a
remote relationship-graph access-control service and kept consistent with it.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
