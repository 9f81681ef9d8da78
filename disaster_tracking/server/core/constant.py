PROJECT_NAME = "DTS Server"
API_V1_STR = "/api/v1"
