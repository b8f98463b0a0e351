from setuptools import setup, find_packages

setup(
    name="pcapmux",
    version="0.1.0",
    description="Merge live pcap streams from several capture processes into one",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "click>=8.0.0",
        "scapy>=2.5.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "pcapmux=pcapmux_cli.main:cli",
        ],
    },
    python_requires=">=3.8",
)
