#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#
