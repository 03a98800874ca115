import os
from glob import glob

from setuptools import setup

package_name = "tracking_layer"

setup(
    name=package_name,
    version="0.1.0",
    packages=[package_name],
    data_files=[
        (os.path.join("share", package_name, "config"), glob("config/*.yaml")),
    ],
    install_requires=["setuptools", "numpy", "PyYAML"],
    extras_require={"test": ["pytest"]},
    python_requires=">=3.8",
    zip_safe=True,
    maintainer="Tracking Layer Maintainer",
    maintainer_email="maintainer@example.com",
    description="Bootstrap particle filter tracking a simulated vehicle from GPS and IMU observations",
    license="MIT",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": [
            "bpf_node = tracking_layer.tracker_node:main",
            "vehicle_sim = tracking_layer.simulator:main",
        ],
    },
)
