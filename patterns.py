# patterns.py
#
# Purpose:
# Static lookup tables used by the analyzers, the URL parser and the error layer.
# Nothing in here has logic. Every analyzer reads from these tables so the
# matching rules live in one place.

import re


# ----------------------------
# GitHub URLs
# ----------------------------
GITHUB_URL_REGEX = re.compile(r"^https?://(www\.)?github\.com/[\w-]+/[\w.-]+/?$")

# Owner/repo extraction once the URL has passed GITHUB_URL_REGEX.
GITHUB_OWNER_REPO_REGEX = re.compile(r"github\.com/([\w-]+)/([\w.-]+)")


# ----------------------------
# File extensions by category
# ----------------------------
CODE_EXTENSIONS = (
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java",
    ".cpp", ".c", ".cs", ".rb", ".go", ".rs",
    ".php", ".swift", ".kt",
)

# Language estimate from file extensions when GitHub has no byte counts.
LANGUAGES = {
    "JavaScript": (".js", ".mjs", ".cjs"),
    "TypeScript": (".ts",),
    "Python": (".py",),
    "Java": (".java",),
    "C++": (".cpp", ".cc", ".cxx", ".hpp", ".h"),
    "C": (".c", ".h"),
    "C#": (".cs",),
    "Ruby": (".rb",),
    "Go": (".go",),
    "Rust": (".rs",),
    "PHP": (".php",),
    "Swift": (".swift",),
    "Kotlin": (".kt",),
    "HTML": (".html", ".htm"),
    "CSS": (".css",),
    "Shell": (".sh", ".bash"),
}


# ----------------------------
# Code quality naming rules
# ----------------------------
TRANSIENT_NAME_REGEX = re.compile(r"test|temp|old|backup|copy|new|tmp", re.IGNORECASE)
NUMBERED_NAME_REGEX = re.compile(r"\d{1,2}\.(js|py|java|ts)$", re.IGNORECASE)
CAMEL_CASE_REGEX = re.compile(r"^[a-z][a-zA-Z0-9]*\.(js|py|ts|java)$")
KEBAB_CASE_REGEX = re.compile(r"^[a-z][a-z0-9-]*\.(js|py|ts|java)$")


# ----------------------------
# Project structure
# ----------------------------
CONFIG_FILENAMES = (
    "package.json",
    "tsconfig.json",
    "webpack.config.js",
    "vite.config.js",
    ".eslintrc",
    ".prettierrc",
    "babel.config.js",
    "jest.config.js",
    "requirements.txt",
    "setup.py",
    "pom.xml",
    "build.gradle",
    "Makefile",
    ".gitignore",
    ".editorconfig",
)

# Each group counts as "present" when any path contains one of its markers.
SEPARATION_GROUPS = {
    "components": ("components/",),
    "controllers": ("controllers/",),
    "models": ("models/",),
    "views": ("views/",),
    "services": ("services/",),
    "utils": ("utils/", "helpers/"),
    "routes": ("routes/", "api/"),
    "config": ("config/",),
    "assets": ("assets/", "static/"),
}

TEST_DIR_MARKERS = ("test/", "tests/", "__tests__/")

JS_TEST_FILE_REGEX = re.compile(r"\.(test|spec)\.[jt]sx?$")


# ----------------------------
# Documentation
# ----------------------------
README_SECTIONS = (
    "Installation",
    "Usage",
    "Features",
    "Documentation",
    "Contributing",
    "License",
    "Tests",
    "API",
    "Examples",
    "Requirements",
    "Setup",
    "Getting Started",
)

README_HEADER_REGEX = re.compile(r"^#+\s+(.+)$", re.MULTILINE)
README_IMAGE_REGEX = re.compile(r"!\[.*?\]")
README_LINK_REGEX = re.compile(r"\[.*?\]\(.*?\)")

# File extension group used by the code-comment proxy.
COMMENTED_CODE_REGEX = re.compile(r"\.(js|jsx|ts|tsx|py|java|cpp|c|cs|rb|go|rs|php|swift|kt)$")


def doc_file_regex(name):
    """Match NAME, NAME.md, NAME.txt or NAME.rst (case-insensitive, whole path)."""
    return re.compile(r"^" + name + r"(\.(md|txt|rst))?$", re.IGNORECASE)


LICENSE_REGEXES = (doc_file_regex("LICENSE"), doc_file_regex("LICENCE"))


# ----------------------------
# Testing
# ----------------------------
TEST_PATH_MARKERS = (
    ".test.",
    ".spec.",
    "_test.",
    "_spec.",
    "/test/",
    "/tests/",
    "/__tests__/",
    "/spec/",
    "test_",
)

# Language-specific suffixes checked against the original-case path.
TEST_FILE_SUFFIXES = ("Test.java", "Tests.cs")

NESTED_TEST_DIR_MARKERS = ("/test/", "/tests/", "/__tests__/")

TEST_UTILITY_MARKERS = ("test/utils", "test/helpers", "testUtils", "setupTests")

# (framework label, token searched in the joined lower-cased path string)
TESTING_TOOL_TOKENS = (
    ("Mocha", "mocha"),
    ("Cypress", "cypress"),
    ("Playwright", "playwright"),
    ("Testing Library", "@testing-library"),
    ("PyTest", "pytest"),
    ("unittest", "unittest"),
    ("JUnit", "junit"),
    ("TestNG", "testng"),
    ("Mockito", "mockito"),
    ("NUnit", "nunit"),
    ("xUnit", "xunit"),
)


# ----------------------------
# Git practices
# ----------------------------
CONVENTIONAL_COMMIT_REGEX = re.compile(r"^(feat|fix|docs|style|refactor|test|chore|perf):")
IMPERATIVE_COMMIT_REGEX = re.compile(r"^(add|update|fix|remove|refactor|improve)")


# ----------------------------
# Security
# ----------------------------
SENSITIVE_FILENAMES = (
    ".env",
    "credentials.json",
    "secrets.yml",
    "private_key.pem",
    "id_rsa",
)


# ----------------------------
# CI/CD, dependencies, containers
# ----------------------------
CICD_PATTERNS = {
    "GitHub Actions": (".github/workflows", ".github/actions"),
    "GitLab CI": (".gitlab-ci.yml",),
    "Travis CI": (".travis.yml",),
    "CircleCI": (".circleci/config.yml",),
    "Jenkins": ("Jenkinsfile",),
    "Azure Pipelines": ("azure-pipelines.yml",),
    "Bitbucket Pipelines": ("bitbucket-pipelines.yml",),
}

# Exact root path -> package manager label, in detection order.
PACKAGE_MANIFESTS = (
    ("package.json", "npm"),
    ("requirements.txt", "pip"),
    ("pom.xml", "maven"),
    ("build.gradle", "gradle"),
    ("Cargo.toml", "cargo"),
    ("go.mod", "go modules"),
)

# Build-tool configs only considered when a package.json is present.
BUILD_TOOL_CONFIGS = (
    ("next.config", "Next.js"),
    ("vite.config", "Vite"),
)

CONTAINER_PATTERNS = {
    "docker": ("Dockerfile", "dockerfile", ".dockerfile"),
    "docker_compose": ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"),
}


# ----------------------------
# Error messages
# ----------------------------
ERROR_MESSAGES = {
    "REPO_NOT_FOUND": "Repository not found or is private",
    "INVALID_URL": "Invalid GitHub repository URL format",
    "RATE_LIMIT": "GitHub API rate limit exceeded. Please try again later.",
    "NETWORK_ERROR": "Network error occurred. Please try again.",
    "UNAUTHORIZED": "GitHub rejected the token (401). Check your GITHUB_TOKEN.",
    "ANALYSIS_TIMEOUT": "Analysis timeout. Repository may be too large.",
    "AI_SERVICE_ERROR": "AI service temporarily unavailable",
    "DATABASE_ERROR": "Database error occurred",
}
