import os
import re
import zlib

import numpy as np
import pytest

os.environ.setdefault("ENVIRONMENT", "testing")


class HashingEncoder:
    """Deterministic bag-of-words encoder standing in for a real model"""

    dimension = 64

    def __init__(self, model_name: str = "hashing-test"):
        self.model_name = model_name
        self.calls = 0

    def encode(self, texts):
        self.calls += 1
        out = np.zeros((len(texts), self.dimension), dtype=np.float32)
        for i, text in enumerate(texts):
            for token in re.findall(r"\w+", text.lower()):
                out[i, zlib.crc32(token.encode()) % self.dimension] += 1.0
        return out


@pytest.fixture
def hashing_factory():
    created = []

    def factory(settings):
        encoder = HashingEncoder(settings.model_name)
        created.append(encoder)
        return encoder

    factory.created = created
    return factory


@pytest.fixture
def embedder(hashing_factory):
    from app.models.settings import EmbeddingSettings
    from app.services.embeddings import EmbeddingGenerator

    return EmbeddingGenerator(EmbeddingSettings(model_name="hashing-test", timeout=5), encoder_factory=hashing_factory)


SAMPLE_RESUME = """John Doe
john.doe@example.com | (555) 123-4567
linkedin.com/in/johndoe
https://johndoe.dev

Summary
Backend engineer who enjoys building APIs.

Experience
Senior Software Engineer
Tech Solutions Inc. | San Francisco, CA
Jan 2020 - Present
• Led development of microservices in Node.js and Docker
• Mentored junior developers

Software Developer at Dev Startup
2017 - 2019
- Built React front-ends backed by MongoDB

Education
University of Technology
Bachelor of Science in Computer Science
2013 - 2017
GPA: 3.8

Skills
JavaScript (Expert), React, Node.js, Python - Intermediate

Certifications
AWS Certified Developer - Amazon Web Services, 2021

Languages
English (Native), Spanish - Intermediate

Projects
E-commerce Platform - Online shop built with React and Node.js
- Source at https://github.com/johndoe/shop
"""


SAMPLE_JOB = """Senior Backend Engineer
Company: Acme Corp
Location: Remote
Employment Type: Full-time
Salary: $120,000 - $150,000

About the role
Join a collaborative team building innovative products.

Requirements:
- 5+ years of experience with Python and Django
- Experience with PostgreSQL and Docker
- Bachelor's degree in Computer Science or related field

Preferred Qualifications
- Kubernetes
- Master's degree

Responsibilities:
- Design and build REST APIs
- Review code

Benefits
- Health insurance
- Flexible hours
"""


@pytest.fixture
def sample_resume_text():
    return SAMPLE_RESUME


@pytest.fixture
def sample_job_text():
    return SAMPLE_JOB
