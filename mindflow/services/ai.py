"""
AI operations: Gemini categorization/grouping and Groq Whisper transcription.
"""

import io
import re
import json
import logging
from typing import Any, List, Optional
from urllib.parse import quote

from mindflow.config import log_event, gemini_model, groq_client, CHATGPT_URL, FALLBACK_CATEGORY
from mindflow.models import AudioCategorization, ProposedGroup


# --- RESPONSE HELPERS ---

def clean_json_response(content: str) -> str:
    """
    Cleans LLM response to ensure valid JSON.
    Removes markdown code blocks (```json ... ```) if present.
    """
    pattern = r"```(?:json)?\s*(.*?)\s*```"
    match = re.search(pattern, content, re.DOTALL)
    if match:
        return match.group(1)
    return content.replace("```json", "").replace("```", "").strip()


def _generate(prompt: str, event: str) -> Optional[str]:
    """Run a Gemini prompt, returning the raw text or None on failure."""
    if not gemini_model:
        log_event(logging.WARNING, "gemini_unavailable", request=event)
        return None

    try:
        log_event(logging.INFO, "gemini_request", request=event)
        response = gemini_model.generate_content(prompt)
        return response.text.strip()
    except Exception as e:
        log_event(logging.ERROR, "gemini_error", request=event, error=str(e))
        return None


def _generate_json(prompt: str, event: str) -> Optional[Any]:
    text = _generate(prompt, event)
    if text is None:
        return None
    try:
        return json.loads(clean_json_response(text))
    except ValueError as e:
        log_event(logging.ERROR, "gemini_invalid_json", request=event, error=str(e), preview=text[:120])
        return None


# --- BRAIN DUMP CATEGORIZATION ---

def categorize_brain_dump(brain_dump: str) -> List[str]:
    """Ask Gemini for the categories that best describe a brain dump."""
    prompt = f"""Analyze the following brain dump and generate a list of categories that best represent the topics discussed. Return only a JSON array of strings. No additional text or explanation is needed.

Brain Dump:
{brain_dump}"""

    data = _generate_json(prompt, "categorize_brain_dump")
    if isinstance(data, dict):
        data = data.get("categories")
    if not isinstance(data, list):
        log_event(logging.WARNING, "categorize_no_categories")
        return []

    categories = [c.strip() for c in data if isinstance(c, str) and c.strip()]
    log_event(logging.INFO, "categorize_success", categories=len(categories))
    return categories


def parse_grouping_response(data: Any) -> List[ProposedGroup]:
    """
    Convert a grouping response into proposed groups.

    Accepts either {"Category": ["thought", ...]} or
    [{"category": "...", "thoughts": [...]}, ...]. Entries are passed through
    as-is so malformed ones are rejected by reconciliation.
    """
    if isinstance(data, dict) and "groupedThoughts" in data:
        data = data["groupedThoughts"]

    if isinstance(data, dict):
        return [ProposedGroup(category=name, excerpts=excerpts) for name, excerpts in data.items()]

    if isinstance(data, list):
        groups = []
        for entry in data:
            if isinstance(entry, dict):
                excerpts = entry.get("thoughts", entry.get("excerpts"))
                groups.append(ProposedGroup(category=entry.get("category"), excerpts=excerpts))
            else:
                groups.append(ProposedGroup(category=None, excerpts=entry))
        return groups

    return []


def group_thoughts_into_categories(brain_dump: str, categories: List[str]) -> List[ProposedGroup]:
    """Ask Gemini to assign the thoughts of a brain dump to the given categories."""
    prompt = f"""You are an expert at categorizing thoughts.

You will receive a brain dump of thoughts and a list of categories.
Your job is to group the thoughts into the categories.
Copy each thought exactly as it appears in the brain dump whenever possible.

Brain Dump: {brain_dump}
Categories: {", ".join(categories)}

Return a JSON object where the keys are the categories and the values are arrays of thoughts that belong to that category.
Return ONLY the JSON, no code blocks or explanations."""

    data = _generate_json(prompt, "group_thoughts")
    if data is None:
        return []

    groups = parse_grouping_response(data)
    log_event(logging.INFO, "group_thoughts_success", groups=len(groups))
    return groups


# --- AUDIO ---

def transcribe_audio(audio_data: bytes, filename: str = "audio.webm") -> str:
    """Transcribe audio using Groq's Whisper API."""
    if not groq_client:
        log_event(logging.WARNING, "groq_unavailable")
        return ""

    try:
        audio_file = io.BytesIO(audio_data)
        audio_file.name = filename

        transcription = groq_client.audio.transcriptions.create(
            file=audio_file,
            model="whisper-large-v3",
            response_format="text"
        )

        text = transcription.strip()
        log_event(logging.INFO, "audio_transcribed", chars=len(text))
        return text

    except Exception as e:
        log_event(logging.ERROR, "transcription_error", error=str(e))
        return ""


def fallback_title(transcript: str) -> str:
    """Heading from the first few words, used when Gemini is unavailable."""
    words = transcript.split()
    return " ".join(words[:4]).title() if len(words) >= 4 else transcript.title()


def categorize_audio_note(
    audio_data: bytes,
    existing_categories: List[str],
    filename: str = "audio.webm",
) -> Optional[AudioCategorization]:
    """
    Transcribe an audio note, title it and pick its category.
    Returns None when the audio could not be transcribed.
    """
    transcript = transcribe_audio(audio_data, filename)
    if not transcript:
        return None

    category_list = "\n".join(f"- {c}" for c in existing_categories) or "(none yet)"
    prompt = f"""You are an expert at categorizing audio notes. You are given the transcription of an audio note.

**Instructions:**
1. Create a short, concise title for it (4-5 words max).
2. Choose the most appropriate category from the list provided.
3. If no existing category is a good fit, create a new, relevant one.

**Transcription:**
"{transcript}"

**Existing Categories:**
{category_list}

Return ONLY a JSON object: {{"category": "...", "title": "..."}}"""

    data = _generate_json(prompt, "categorize_audio_note")
    if not isinstance(data, dict):
        log_event(logging.INFO, "audio_fallback_category", chars=len(transcript))
        return AudioCategorization(
            category=FALLBACK_CATEGORY,
            title=fallback_title(transcript),
            transcript=transcript,
        )

    category = data.get("category")
    title = data.get("title")
    result = AudioCategorization(
        category=category.strip() if isinstance(category, str) and category.strip() else FALLBACK_CATEGORY,
        title=title.strip() if isinstance(title, str) and title.strip() else fallback_title(transcript),
        transcript=transcript,
    )
    log_event(logging.INFO, "audio_categorized", category=result.category, title=result.title)
    return result


# --- CHATGPT HAND-OFF ---

def transform_to_chatgpt_prompt(text: str) -> str:
    """Turn a thought into a concise ChatGPT prompt, or the thought itself as fallback."""
    prompt = f"""You are an AI prompt generator. Your task is to transform the given brain dump content into a concise and effective prompt for ChatGPT.

Brain Dump Content: {text}

Return ONLY the prompt, no explanations."""

    result = _generate(prompt, "chatgpt_prompt")
    if not result:
        log_event(logging.INFO, "chatgpt_prompt_fallback", chars=len(text))
        return text.strip()
    return result


def build_chatgpt_url(prompt: str) -> str:
    return f"{CHATGPT_URL}?prompt={quote(prompt, safe='')}"
