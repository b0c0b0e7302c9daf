# Recidiviz - a data platform for criminal justice reform
# Copyright (C) 2024 Recidiviz, Inc.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
# =============================================================================
"""Packaging for the custody fine and sentence tracking library.

The fine schedule and sentence configuration ship as YAML data sets inside the
package, so they are listed in package_data.
"""
import setuptools

REQUIRED_PACKAGES = [
    "attrs",
    "cattrs",
    "more-itertools",
    "PyYAML",
]

TEST_PACKAGES = [
    "freezegun",
    "pytest",
]

setuptools.setup(
    name="custody",
    version="1.0.0",
    python_requires=">=3.8",
    install_requires=REQUIRED_PACKAGES,
    extras_require={"test": TEST_PACKAGES},
    packages=setuptools.find_packages(include=["custody", "custody.*"]),
    package_data={
        "custody.fines": ["*.yaml"],
        "custody.sentencing": ["*.yaml"],
    },
)
