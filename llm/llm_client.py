from __future__ import annotations

from functools import lru_cache

from langchain_core.language_models import BaseChatModel

from config.settings import settings


@lru_cache(maxsize=1)
def get_llm() -> BaseChatModel:
    """
    Singleton chat model shared by all aspect judges.

    Provider is selected via the LLM_PROVIDER env variable:
      - "openai"  (default) — OpenAI chat completions (gpt-4o-mini)
      - "bedrock"           — AWS Bedrock / Claude via boto3

    Streaming is disabled for compatibility with with_structured_output().
    """
    provider = settings.llm_provider.lower().strip()

    if provider == "bedrock":
        return _build_bedrock()
    return _build_openai()


def _build_openai() -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    if not settings.openai_api_key:
        raise ValueError(
            "LLM_PROVIDER=openai but OPENAI_API_KEY is not set. "
            "Add it to your .env file or pass --judgments with preset judgments."
        )

    return ChatOpenAI(
        model=settings.openai_model_id,
        api_key=settings.openai_api_key,
        temperature=settings.openai_temperature,
        max_tokens=settings.openai_max_tokens,
        timeout=settings.openai_timeout_seconds,
        max_retries=1,
        streaming=False,
    )


def _build_bedrock() -> BaseChatModel:
    from langchain_aws import ChatBedrock
    import boto3

    if settings.aws_profile:
        session = boto3.Session(profile_name=settings.aws_profile)
    elif settings.aws_access_key_id and settings.aws_secret_access_key:
        session = boto3.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_default_region,
        )
    else:
        session = boto3.Session()

    return ChatBedrock(
        model_id=settings.bedrock_model_id,
        region_name=settings.aws_default_region,
        model_kwargs={
            "temperature": settings.bedrock_temperature,
            "max_tokens": settings.bedrock_max_tokens,
            "anthropic_version": "bedrock-2023-05-31",
        },
        streaming=False,
        client=session.client("bedrock-runtime", region_name=settings.aws_default_region),
    )
