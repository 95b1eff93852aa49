import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Sandbox = "sandbox"
    Test = "test"
    Local = "local"


class LetterGrade(enum.Enum):
    APlus = "A+"
    A = "A"
    AMinus = "A-"
    BPlus = "B+"
    B = "B"
    BMinus = "B-"
    CPlus = "C+"
    C = "C"
    CMinus = "C-"
    DPlus = "D+"
    D = "D"
    DMinus = "D-"
    F = "F"
