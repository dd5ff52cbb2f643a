#!/usr/bin/env python3
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See LICENSE and https://ylonen.org

from setuptools import setup

with open("README.md", "r") as f:
    long_description = f.read()

setup(name="wikitextbot",
      version="0.1.0",
      description="Wikitext tag, parameter, template and section parser "
      "for MediaWiki bots",
      long_description=long_description,
      long_description_content_type="text/markdown",
      author="Tatu Ylonen",
      author_email="ylo@clausal.com",
      license="MIT",
      scripts=[],
      packages=["wikitextbot"],
      package_data={"wikitextbot": ["data/*/namespaces.json"]},
      python_requires=">=3.9",
      install_requires=["requests", "dateparser", "lru-dict"],
      extras_require={"test": ["pytest"]},
      entry_points={
          "console_scripts": ["wikitextbot=wikitextbot.__main__:main"],
      },
      keywords=[
          "wikipedia",
          "mediawiki",
          "wikitext",
          "bot",
          "parser",
      ],
      classifiers=[
          "Development Status :: 3 - Alpha",
          "Intended Audience :: Developers",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English",
          "Natural Language :: Japanese",
          "Operating System :: POSIX :: Linux",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3 :: Only",
          "Topic :: Text Processing :: Markup",
          ])
