import os
import sys

from dotenv import load_dotenv
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings
from langchain_groq import ChatGroq

from wedding_kb.exception.custom_exception import KnowledgeBaseException
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.utils.config_loader import load_config

PROVIDER_KEYS = {
    "google": "GOOGLE_API_KEY",
    "groq": "GROQ_API_KEY",
}


class ApiKeyManager:
    """Loads the API keys for the providers named in config from the environment."""

    def __init__(self, providers: list[str]):
        load_dotenv()
        self.keys = {}

        required = sorted({PROVIDER_KEYS[p] for p in providers if p in PROVIDER_KEYS})

        for k in required:
            if val := os.getenv(k):
                self.keys[k] = val
                log.info(f"Loaded {k} from env")
            else:
                log.error(f"Missing required API key: {k}")

        if len(self.keys) != len(required):
            raise KnowledgeBaseException("Missing API Keys", sys)

    def get(self, key: str) -> str:
        return self.keys[key]


class ModelLoader:
    """
    Responsible for:
    - Loading the embedding model
    - Loading the metadata LLM
    """

    def __init__(self, config: dict | None = None):
        self.config = config or load_config()
        log.info("YAML config loaded", config_keys=list(self.config.keys()))

        providers = [self.config["embedding_model"]["provider"]]
        providers += [c["provider"] for c in self.config.get("llm", {}).values()]
        self.api_key_mgr = ApiKeyManager(providers)
        self.api_keys = self.api_key_mgr.keys

    def load_embeddings(self):
        """
        Load and return the embedding model from Google Generative AI.
        """
        emb_config = self.config["embedding_model"]
        provider = emb_config.get("provider", "google")
        if provider != "google":
            raise ValueError(f"Unsupported embedding provider {provider}")

        try:
            model_name = emb_config["model_name"]
            log.info("Loading embedding model", model=model_name)
            return GoogleGenerativeAIEmbeddings(
                model=model_name, google_api_key=self.api_keys.get("GOOGLE_API_KEY")
            )
        except Exception as e:
            log.error("Error loading embedding model", error=str(e))
            raise KnowledgeBaseException("Failed to load embedding model", sys)

    def load_llm(self, role: str = "metadata"):
        """
        Load and return the configured LLM model.
        Args:
            role: key under `llm` in config, e.g. "metadata"

        Returns:
            Configured chat model instance
        """
        if role not in self.config.get("llm", {}):
            log.error("LLM role not found in config", role=role)
            raise ValueError(f"LLM role '{role}' not found in config")

        llm_config = self.config["llm"][role]

        provider = llm_config["provider"]
        model = llm_config["model_name"]
        temp = llm_config.get("temperature")
        max_t = llm_config.get("max_tokens")

        log.info(f"Loading LLM for role={role}", model=model)

        if provider == "google":
            return ChatGoogleGenerativeAI(
                model=model,
                google_api_key=self.api_keys.get("GOOGLE_API_KEY"),
                temperature=temp,
                max_output_tokens=max_t,
            )

        if provider == "groq":
            return ChatGroq(
                model=model,
                api_key=self.api_keys.get("GROQ_API_KEY"),
                temperature=temp,
                max_tokens=max_t,
            )

        raise ValueError(f"Unsupported provider {provider}")
