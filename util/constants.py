class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    UPLOAD_VIDEOS = V1 + "/upload"
    UPLOAD_CHARACTER_IMAGE = V1 + "/upload-character-image"
    PROCESS = V1 + "/process"
    STATUS = V1 + "/status/{job_id}"
    DOWNLOAD = V1 + "/download/{job_id}/{file_id}"


class StaticURIs:
    FILES = "/files"
    VIDEOS = FILES + "/videos"
    IMAGES = FILES + "/images"
    SEGMENTS = FILES + "/segments"
    OUTPUTS = FILES + "/outputs"
