from setuptools import setup

setup(
    name="outline-rw",
    version="0.0.1",
    description="Library to de/serialize Org and Markdown outlines and manipulate them.",
    license="Apache License 2.0",
    packages=["outline_rw"],
    scripts=[],
    entry_points={
        "console_scripts": ["outline-rw=outline_rw.cli:main"],
    },
    include_package_data=False,
    python_requires=">=3.11",
    install_requires=[
        "PyYAML",
        "tomli-w",
    ],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=True,
)
