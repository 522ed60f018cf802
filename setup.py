#!/usr/bin/env python3
#
# Copyright (c) 2020-2021 Tatu Ylonen.  See LICENSE and https://ylonen.org

from setuptools import setup

with open("README.md", "r") as f:
    long_description = f.read()

setup(name="wikitextsplice",
      version="0.1.0",
      description="Parser and in-place editor for MediaWiki wikitext: tags, sections, parameters, templates, parser functions and wikilinks",
      long_description=long_description,
      long_description_content_type="text/markdown",
      author="Tatu Ylonen",
      author_email="ylo@clausal.com",
      license="MIT",
      scripts=[],
      package_dir={"": "src"},
      packages=["wikitextsplice"],
      package_data={"wikitextsplice": ["data/*/*.json"]},
      python_requires=">=3.9",
      install_requires=["lru-dict", "requests"],
      extras_require={"dev": ["pytest"]},
      keywords=[
          "wikipedia",
          "mediawiki",
          "wikitext",
          "templates",
          "parser functions",
          "bot",
      ],
      classifiers=[
          "Development Status :: 3 - Alpha",
          "Intended Audience :: Developers",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English",
          "Operating System :: OS Independent",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3 :: Only",
          "Topic :: Text Processing",
          "Topic :: Text Processing :: Markup",
          ])
