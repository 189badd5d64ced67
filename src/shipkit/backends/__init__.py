# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Backends for the external systems shipkit talks to.

- :mod:`shipkit.backends.vcs`: version control (``git``).
- :mod:`shipkit.backends.forge`: release host (GitHub REST API).
- :mod:`shipkit.backends._run`: subprocess execution.
- :mod:`shipkit.backends._pool`: worker pool for blocking calls.
"""
