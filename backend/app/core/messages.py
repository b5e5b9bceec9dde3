""" User-facing error and success messages shared by the API and notification sinks. """


# SUCCESS MESSAGES
SUCCESS = {
    "CONVERSATION_CREATED"      :   "Ready to start chatting!",
    "CONVERSATION_DELETED"      :   "The conversation and all its messages have been removed",
    "CONVERSATION_RENAMED"      :   "Conversation title has been changed",
    "FILE_UPLOADED"             :   "File has been successfully uploaded",
    "FEEDBACK_POSITIVE"         :   "Thank you for your positive feedback!",
    "FEEDBACK_NEGATIVE"         :   "Thank you for your feedback. We'll use it to improve our responses.",
}


# ERROR MESSAGES
ERROR = {
    # Conversation Errors
    "CONVERSATION_NOT_FOUND"    :   "Conversation not found",
    "CONVERSATION_INIT_FAILED"  :   "Failed to initialize chat",
    "CONVERSATION_LOAD_FAILED"  :   "Failed to load conversations",
    "CONVERSATION_CREATE_FAILED":   "Failed to create new conversation",
    "CONVERSATION_DELETE_FAILED":   "Failed to delete conversation",
    "CONVERSATION_RENAME_FAILED":   "Failed to update conversation title",
    "CONVERSATION_TITLE_EMPTY"  :   "Conversation title cannot be empty",

    # Message Errors
    "MESSAGE_EMPTY"             :   "Message cannot be empty",
    "MESSAGE_SEND_FAILED"       :   "Failed to send message",
    "MESSAGE_LOAD_FAILED"       :   "Failed to load messages",
    "MESSAGE_NOT_FOUND"         :   "Message not found",
    "FILE_DESCRIPTOR_INCOMPLETE":   "File messages require url, name, size and type",
    "INVALID_COMMAND"           :   "Unrecognized chat command",

    # Scooter Model Errors
    "MODEL_NOT_FOUND"           :   "Scooter model not found",

    # Upload Errors
    "INVALID_FILE_TYPE"         :   "Please upload PDF, images (JPG, PNG, GIF), or videos (MP4, AVI)",
    "FILE_TOO_LARGE"            :   "File size must be less than {} MB",
    "UPLOAD_FAILED"             :   "Failed to upload file",
    "STORAGE_UNAVAILABLE"       :   "File storage is unavailable",

    # Feedback Errors
    "INVALID_FEEDBACK_TYPE"     :   "Feedback must be 'positive' or 'negative'",
    "FEEDBACK_FAILED"           :   "Failed to submit feedback. Please try again.",
}
