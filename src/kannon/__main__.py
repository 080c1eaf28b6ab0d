# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
from kannon.cli import main

main()
