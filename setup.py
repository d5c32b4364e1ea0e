from setuptools import find_namespace_packages, setup

setup(
    name="nodeboot-node-metadata",
    version="0.1.0",
    description="Instance identity metadata (IMDSv2) for node bootstrap",
    package_dir={"": "node-metadata"},
    packages=find_namespace_packages(where="node-metadata", include=["nodeboot.*"]),
    python_requires=">=3.8",
    install_requires=["requests>=2.25"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "node-metadata = nodeboot.node_metadata.main:main",
        ],
    },
)
