from __future__ import annotations

LANGUAGE_NAMES = {"fr": "French", "en": "English"}

DOCUMENT_SHAPE = """
Return strict JSON with keys:
- analysis: object with companyName: string, jobTitle: string
- ats: object with score: integer 0-100, missingKeywords: string[], feedback: string
- design: object with layout: "modern" | "classic" | "minimal",
  color: "blue" | "emerald" | "slate" | "rose" | "amber",
  font: "sans" | "serif" | "mono",
  rationale: string (your chat reply to the user explaining what you did)
- cv: object with fullName, title, email, phone, location, summary: string,
  skills: string[], languages: string[],
  experience: array of objects with role, company, duration: string, description: string[],
  education: array of objects with degree, institution, year: string
- coverLetter: string
""".strip()

CREATE_PROMPT = """
You are a career coach and document designer talking to the user through a chat.
All CV and cover letter content must be written in {language_name}.

Task: create a new application tailored to the job posting below, using the
candidate's source CV and cover letter. No photo, A4 format.

Job posting:
{job_description}

Source CV:
{master_cv}

Source cover letter:
{master_letter}

User message: "{user_message}"

{document_shape}
""".strip()

REFINE_PROMPT = """
You are a career coach and document designer talking to the user through a chat.
All CV and cover letter content must be written in {language_name}.

Task: update the existing application according to the user's request (content or design).
Keep everything the user did not ask to change.

Job posting:
{job_description}

Current application JSON:
{current_json}

User message: "{user_message}"

{document_shape}
""".strip()


def build_generation_prompt(
    *,
    job_description: str,
    current_json: str | None,
    user_message: str,
    master_cv: str,
    master_letter: str,
    language: str,
) -> str:
    language_name = LANGUAGE_NAMES.get(language, "English")
    if current_json is None:
        return CREATE_PROMPT.format(
            language_name=language_name,
            job_description=job_description,
            master_cv=master_cv,
            master_letter=master_letter,
            user_message=user_message,
            document_shape=DOCUMENT_SHAPE,
        )
    return REFINE_PROMPT.format(
        language_name=language_name,
        job_description=job_description,
        current_json=current_json,
        user_message=user_message,
        document_shape=DOCUMENT_SHAPE,
    )
