import pytest

from interview_voice.schemas import ResumeProfile


@pytest.fixture
def profile() -> ResumeProfile:
    return ResumeProfile.model_validate({
        "name": "Ada",
        "skills": {"skills": ["Python", "asyncio"]},
        "experience": [
            {
                "title": "Backend Engineer",
                "company": "Acme",
                "duration": "2020-2024",
                "achievements": ["Cut p99 latency by 40%"],
            }
        ],
        "projects": [{"title": "Parser", "description": "A PEG parser", "link": ""}],
    })
